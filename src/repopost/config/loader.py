"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import RepoPostConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path("repopost.yaml")
USER_CONFIG = Path(".repopost") / "config.yaml"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest precedence first."""
    paths = [Path(cli_path)] if cli_path else []
    return [*paths, PROJECT_CONFIG, Path.home() / USER_CONFIG]


def load_config(cli_path: str | None = None) -> RepoPostConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    Empty files are skipped. Raises ValueError for unreadable YAML or values
    that fail validation.
    """
    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            config = RepoPostConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return config

    return RepoPostConfig()


def _read_yaml(path: Path) -> object:
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-default} references in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `repopost config init`
DEFAULT_CONFIG_TEMPLATE = """\
# repopost.yaml

# AI backend
llm:
  provider: "google"           # google | anthropic | openai
  model: "gemini-2.5-flash-lite"
  api_key_env: "GEMINI_API_KEY"
  max_tokens: 2048
  temperature: 0.7

# Local admission control in front of every AI call
rate_limit:
  max_tpm: 15000               # tokens per rolling window
  max_rpm: 15                  # requests per rolling window
  min_delay_ms: 1000           # spacing between dispatched calls
  window_ms: 60000

# Source control (fallback token when no user token is supplied)
vcs:
  provider: "github"
  token_env: "GITHUB_TOKEN"

# Draft pipeline limits
pipeline:
  max_files_to_select: 30
  max_paths_in_selection_prompt: 200
  max_chars_per_file: 5000
  download_concurrency: 5
  max_tree_paths_in_prompt: 100
  max_prompt_chars: 28000
  max_routing_files: 10
  max_chars_per_routing_file: 1000
  max_public_pages: 5

# Screenshot rendering service
screenshots:
  api_url: "https://api.microlink.io/"
  api_key_env: "MICROLINK_API_KEY"   # optional, free tier works without it
  viewport_width: 1200
  viewport_height: 630
  timeout_seconds: 30
  max_pages: 5

# Publish target
linkedin:
  api_base: "https://api.linkedin.com/v2"
  token_env: "LINKEDIN_ACCESS_TOKEN"
  person_urn_env: "LINKEDIN_PERSON_URN"
  max_post_chars: 3000

# Logging
log_level: "info"              # debug | info | warn | error
"""
