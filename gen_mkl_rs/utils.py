import os
import shutil
import subprocess
import sys
from collections import namedtuple
from importlib import resources
from pathlib import Path
from typing import Sequence

import tomli as toml

from gen_mkl_rs import logging as gen_logging

logger = gen_logging.get_logger(__name__)

ProcessResult = namedtuple("ProcessResult", ["stdout", "stderr", "returncode"])

_RESOURCE_PACKAGE = "gen_mkl_rs"
_DEFAULT_CONFIG_NAME = "gen_mkl_rs.default.toml"
_USER_CONFIG_NAME = "gen_mkl_rs.toml"
CONFIG_ENV_VAR = "GEN_MKL_RS_CONFIG"


######## Config ########
def _merge_configs(config, default_config):
    config_out = {}

    for key, default_value in default_config.items():
        if key in config:
            if isinstance(config[key], dict) and isinstance(default_value, dict):
                config_out[key] = _merge_configs(config[key], default_value)
            elif isinstance(config[key], dict) or isinstance(default_value, dict):
                raise TypeError(f"Type mismatch for key '{key}': "
                                f"config has {type(config[key])}, default_config has {type(default_value)}")
            # Otherwise, config[key] takes precedence
            else:
                config_out[key] = config[key]
        else:
            config_out[key] = default_value

    # Add keys that are only in config
    for key, value in config.items():
        if key not in default_config:
            config_out[key] = value

    return config_out


def read_resource_text(name: str) -> str:
    """Return the text of a file shipped under ``gen_mkl_rs/_resources``."""
    try:
        resource = resources.files(_RESOURCE_PACKAGE).joinpath("_resources", name)
        with resource.open("r", encoding="utf-8") as handle:
            return handle.read()
    except (FileNotFoundError, ModuleNotFoundError):
        fallback = Path(__file__).resolve().parent / "_resources" / name
        with open(fallback, "r", encoding="utf-8") as handle:
            return handle.read()


def load_default_config():
    """Load the bundled default configuration from packaged resources."""
    return toml.loads(read_resource_text(_DEFAULT_CONFIG_NAME))


def try_load_config(config_file=None):
    """Load user configuration merged with defaults.

    Resolution order:
    1. Explicit `config_file` argument.
    2. `GEN_MKL_RS_CONFIG` environment variable.
    3. `./gen_mkl_rs.toml` relative to current working directory.
    If none are found, return the default config alone.
    """
    default_config = load_default_config()

    def _load_user_config(path: Path) -> dict:
        with open(path, "rb") as f:
            return toml.load(f)

    if config_file:
        candidate = Path(config_file).expanduser()
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find config file {candidate}")
        return _merge_configs(_load_user_config(candidate), default_config)

    env_candidate = os.environ.get(CONFIG_ENV_VAR)
    if env_candidate:
        env_path = Path(env_candidate).expanduser()
        if not env_path.is_file():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR}={env_candidate} does not point to a readable file")
        return _merge_configs(_load_user_config(env_path), default_config)

    cwd_candidate = Path.cwd() / _USER_CONFIG_NAME
    if cwd_candidate.is_file():
        return _merge_configs(_load_user_config(cwd_candidate), default_config)

    logger.debug("No user config found; falling back to default configuration only")
    return default_config


######## Files ########
def read_file(path: str) -> str:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Could not find file {path}")
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def read_input(path: str) -> str:
    """Read ``path``, or standard input when ``path`` is ``-``."""
    if path == "-":
        return sys.stdin.read()
    return read_file(path)


def write_file_atomic(path: str, content: str) -> None:
    """Write ``content`` to ``path`` in one step.

    The text goes to a sibling temporary file first and is then moved over
    ``path``, so readers never observe a half-written file. Permissions are
    whatever ``open`` gives under the current umask.
    """
    path_dir = os.path.dirname(os.path.abspath(path))
    os.makedirs(path_dir, exist_ok=True)
    tmp_path = os.path.join(path_dir, f".{os.path.basename(path)}.{os.getpid()}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


######## Compiler ########
def get_compiler() -> str:
    if shutil.which("clang"):
        compiler = "clang"
    elif shutil.which("gcc"):
        compiler = "gcc"
    else:
        raise OSError("No C compiler found")

    return compiler


def get_compiler_include_paths() -> list[str]:
    compiler = get_compiler()
    cmd = [compiler, '-v', '-E', '-x', 'c', os.devnull]
    result = run_command(cmd)
    compile_output = result.stderr
    search_include_paths = []

    add_include_path = False
    for line in compile_output.split('\n'):
        if line.startswith('#include <...> search starts here:'):
            add_include_path = True
            continue
        if line.startswith('End of search list.'):
            break

        if add_include_path:
            search_include_paths.append(line.strip())

    return search_include_paths


def run_command(
    cmd: Sequence[str | os.PathLike[str]],
    *,
    timeout: float | None = None,
    check: bool = False,
) -> ProcessResult:
    completed = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        timeout=timeout,
        check=False,
    )
    result = ProcessResult(completed.stdout or "", completed.stderr or "", completed.returncode)
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
    return result
