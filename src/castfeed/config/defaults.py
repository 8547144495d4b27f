"""Default configuration values and file templates."""

from castfeed.config.schema import GlobalConfig

DEFAULT_GLOBAL_CONFIG = GlobalConfig()

_DEFAULT_CONFIG_TEMPLATE = """\
# castfeed configuration
version: "1"
log_level: WARNING

publish:
  extract_concurrency: 4
  upload_concurrency: 4
  extract_timeout_seconds: 30
  upload_timeout_seconds: 600
  connect_timeout_seconds: 10
  max_upload_attempts: 3
  public_read: false
  feed_cache_control: max-age=300

# Values applied to every show unless the show file or a flag overrides them
show_defaults: {}
"""


def get_default_config_content() -> str:
    """Get the contents written to a fresh config.yaml."""
    return _DEFAULT_CONFIG_TEMPLATE
