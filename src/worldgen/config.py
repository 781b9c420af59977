"""World generation configuration loading from TOML files."""

import tomllib
from pathlib import Path

from .terrain.config import WorldGenConfig

CONFIGS_DIR = Path(__file__).parent.parent.parent / "configs"


def load_config(config_path: Path) -> WorldGenConfig:
    """Load configuration from a TOML file.

    Top-level keys map onto WorldGenConfig fields; tables such as
    ``[hydrology]`` map onto the nested tuning models.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed WorldGenConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return WorldGenConfig.model_validate(data)


def find_config(name: str, configs_dir: Path = CONFIGS_DIR) -> Path:
    """Resolve a world preset name to its TOML file.

    Anything that looks like a path (contains ``/`` or ends in ``.toml``) is
    used as-is. A bare name such as ``archipelago`` is looked up as
    ``<configs_dir>/archipelago.toml``, then as ``<configs_dir>/archipelago``.

    Args:
        name: Preset name, or a path to a world TOML file.
        configs_dir: Directory of bundled world presets.

    Returns:
        Path to the world config file.

    Raises:
        FileNotFoundError: If no file matches; the message lists the presets.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"World preset '{name}' not found in {configs_dir}. "
        f"Available presets: {list_configs(configs_dir)}"
    )


def list_configs(configs_dir: Path = CONFIGS_DIR) -> list[str]:
    """Names of the bundled world presets (``default``, ``small``, ...), sorted."""
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))
