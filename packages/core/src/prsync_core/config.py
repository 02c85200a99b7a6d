import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "provider": "github",
    "review_source": "workflow",  # workflow | mock | anthropic | openai
    "workflow_url": None,
    "workflow_timeout": 30.0,
    "include": [],  # filename suffixes to review, e.g. [".tf", ".py"]; empty = every code file
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "store": "sqlite",  # sqlite | memory
    "store_path": ".prsync.db",
    "max_chars_per_file": 20000,
}


def load_config(config_path: str = ".prsync.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prsync.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "include": list(DEFAULT_CONFIG["include"]),
        "exclude": list(DEFAULT_CONFIG["exclude"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # The workflow URL may come from the environment when the file leaves it unset
    if not config.get("workflow_url"):
        config["workflow_url"] = os.environ.get("AI_WORKFLOW_URL")
    if os.environ.get("MOCK_AI_REVIEW", "").lower() == "true":
        config["review_source"] = "mock"

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["github_app_id"] = os.environ.get("GITHUB_APP_ID")
    config["github_private_key"] = os.environ.get("GITHUB_PRIVATE_KEY")
    config["webhook_secret"] = os.environ.get("GITHUB_WEBHOOK_SECRET")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config
