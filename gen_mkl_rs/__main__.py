import argparse
import sys

import jinja2
from clang.cindex import LibclangError, TranslationUnitLoadError

from gen_mkl_rs import generator, logging as gen_logging, utils

logger = gen_logging.get_logger(__name__)


def parse_generate(parser):
    parser.add_argument(
        '--input',
        '-i',
        type=str,
        required=True,
        dest='input_funcs_path',
        help='List of functions to generate, one per line. Use * for s/d and # for S/D, - reads stdin'
    )

    parser.add_argument(
        '--output',
        '-o',
        type=str,
        required=True,
        dest='output_file',
        help='The output file'
    )

    parser.add_argument(
        '--mkl-header',
        '-m',
        type=str,
        default=None,
        help='Path to mkl.h, default to $MKLROOT/include/mkl.h'
    )

    parser.add_argument(
        '--mkl-provider-crate',
        '-c',
        type=str,
        default=None,
        help='The crate providing the raw MKL symbols, default to `crate`'
    )

    parser.add_argument(
        '--trait-name',
        '-t',
        type=str,
        default=None,
        help='Name of the generated trait, default to `MKLRoutines`'
    )

    parser.add_argument(
        '--header',
        action='store_true',
        help='Emit a C header with the selected prototypes instead of Rust bindings'
    )

    parser.add_argument(
        '--clang-arg',
        action='append',
        default=None,
        dest='clang_args',
        help='Extra argument passed to libclang, can be repeated'
    )

    parser.add_argument(
        '--config',
        type=str,
        dest='config_file',
        help='The configuration file to use'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Console log level, e.g. DEBUG or WARNING'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        default=None,
        help='Also write a log file into this directory'
    )


def _configure_logging_from_args(config, args):
    gen_logging.configure_logging(
        config,
        console_level_override=args.log_level,
        log_dir_override=args.log_dir,
        force_reconfigure=True,
    )


def generate(parser, args):
    try:
        config = utils.try_load_config(args.config_file)
        _configure_logging_from_args(config, args)
    except (FileNotFoundError, TypeError, ValueError) as e:
        parser.error(str(e))

    try:
        generate_config = generator.build_config(
            config,
            funcs_path=args.input_funcs_path,
            output_path=args.output_file,
            header_path=args.mkl_header,
            provider_crate=args.mkl_provider_crate,
            trait_name=args.trait_name,
            header_output=args.header,
            clang_args=args.clang_args,
        )
        generator.generate(generate_config)
    except (OSError, ValueError, TranslationUnitLoadError, LibclangError, jinja2.TemplateError) as e:
        logger.error("Generation failed: %s", e)
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='gen-mkl-rs',
        description='Generate select MKL bindings for Rust'
    )
    parse_generate(parser)

    args = parser.parse_args(argv)
    try:
        generate(parser, args)
    finally:
        gen_logging.shutdown_logging()


if __name__ == '__main__':
    main()
