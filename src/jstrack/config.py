# src/jstrack/config.py
"""
Settings for jstrack.

Values come from config.yaml (optional) with ${VAR} templates resolved from
the environment, then environment overrides loaded through .env.
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Effective configuration for one command invocation."""
    knowledge_repo: str = "https://github.com/ione-chebkn/js-knowledge-data"
    data_dir: Path = Path(".js-knowledge-data")
    data_file: str = "knowledge-base.json"
    backup_files: List[str] = field(default_factory=lambda: ["knowledge-base.json"])
    sync: bool = True
    github_base_url: str = "https://api.github.com"
    github_user: str = "ione-chebkn"
    github_token: Optional[str] = None
    github_timeout: float = 10.0

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_file

    def to_dict(self) -> Dict[str, Any]:
        """Flat view used by the `config` command."""
        return {
            'knowledge.repo': self.knowledge_repo,
            'knowledge.data_dir': str(self.data_dir),
            'knowledge.data_file': self.data_file,
            'knowledge.backup_files': ", ".join(self.backup_files),
            'knowledge.sync': self.sync,
            'github.base_url': self.github_base_url,
            'github.user': self.github_user,
            'github.token': self.github_token,
            'github.timeout': self.github_timeout,
        }


def _resolve_template(value: Any) -> Any:
    """Replace a '${VAR}' string with the environment value (or None)."""
    if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
        return os.getenv(value[2:-1])
    return value


def _load_yaml(config_path: Optional[str]) -> Dict[str, Any]:
    """Load configuration from YAML file, filling in defaults."""
    path = Path(config_path or DEFAULT_CONFIG_FILE)
    config: Dict[str, Any] = {}

    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded config from {path}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to read config {path}: {e}")
            config = {}
    elif config_path:
        logger.warning(f"Config file not found: {path}, using defaults")

    if not isinstance(config, dict):
        config = {}

    defaults = Settings()

    config.setdefault('knowledge', {})
    config['knowledge'].setdefault('repo', defaults.knowledge_repo)
    config['knowledge'].setdefault('data_dir', str(defaults.data_dir))
    config['knowledge'].setdefault('data_file', defaults.data_file)
    config['knowledge'].setdefault('backup_files', list(defaults.backup_files))
    config['knowledge'].setdefault('sync', defaults.sync)

    config.setdefault('github', {})
    config['github'].setdefault('base_url', defaults.github_base_url)
    config['github'].setdefault('user', defaults.github_user)
    config['github'].setdefault('token', '${GITHUB_TOKEN}')
    config['github'].setdefault('timeout', defaults.github_timeout)

    return config


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Build Settings from config.yaml, .env and the process environment."""
    load_dotenv()

    config = _load_yaml(config_path)
    knowledge = config['knowledge']
    github = config['github']

    settings = Settings(
        knowledge_repo=_resolve_template(knowledge['repo']),
        data_dir=Path(_resolve_template(knowledge['data_dir'])),
        data_file=_resolve_template(knowledge['data_file']),
        backup_files=list(knowledge['backup_files'] or []),
        sync=bool(knowledge['sync']),
        github_base_url=str(_resolve_template(github['base_url'])).rstrip('/'),
        github_user=_resolve_template(github['user']),
        github_token=_resolve_template(github['token']),
        github_timeout=float(github['timeout']),
    )

    # Environment wins over the file
    if os.getenv("JSTRACK_DATA_DIR"):
        settings.data_dir = Path(os.environ["JSTRACK_DATA_DIR"])
    if os.getenv("JSTRACK_SYNC") is not None:
        settings.sync = os.environ["JSTRACK_SYNC"].strip().lower() not in _FALSE_VALUES
    if os.getenv("JSTRACK_GITHUB_USER"):
        settings.github_user = os.environ["JSTRACK_GITHUB_USER"]
    if os.getenv("GITHUB_TOKEN"):
        settings.github_token = os.environ["GITHUB_TOKEN"]

    if settings.data_file not in settings.backup_files:
        settings.backup_files.insert(0, settings.data_file)

    return settings
