import configparser
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from looseobj.objects.errors import IdentityNotConfiguredError
from looseobj.objects.models import User

logger = logging.getLogger(__name__)


def config_paths(git_dir: Optional[Union[str, Path]] = None) -> List[Path]:
    """Config files in increasing priority: global first, repository last."""
    global_config = os.getenv("GIT_CONFIG_GLOBAL") or os.path.expanduser("~/.gitconfig")
    paths = [Path(global_config)]
    if git_dir is not None:
        paths.append(Path(git_dir) / "config")
    return paths


def read_config(git_dir: Optional[Union[str, Path]] = None) -> configparser.ConfigParser:
    config = configparser.ConfigParser(interpolation=None, strict=False)
    read = config.read([str(p) for p in config_paths(git_dir)], encoding="utf-8")
    logger.debug("Read config from %s", read)
    return config


def get_user(config: Optional[configparser.ConfigParser] = None, git_dir: Optional[Union[str, Path]] = None) -> User:
    """Returns the `user.name` / `user.email` identity used for commits."""
    if config is None:
        config = read_config(git_dir)

    if not config.has_section("user"):
        raise IdentityNotConfiguredError("user.name and user.email are not configured (no [user] section in git config)")

    name = config["user"].get("name", "").strip()
    email = config["user"].get("email", "").strip()
    if not name or not email:
        raise IdentityNotConfiguredError("Both user.name and user.email must be set in git config")
    return User(name=name, email=email)
