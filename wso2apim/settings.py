import logging
import os
from typing import Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .base import ConnectionConfig

logger = logging.getLogger(__name__)

# ConnectionConfig field -> environment variable
ENV_VARS = {
    'host': 'WSO2APIM_HOST',
    'port': 'WSO2APIM_PORT',
    'version_slug': 'WSO2APIM_VERSION_SLUG',
    'user': 'WSO2APIM_USER',
    'password': 'WSO2APIM_PASSWORD',
    'gateway_env': 'WSO2APIM_GATEWAY_ENV',
    'verify_ssl': 'WSO2APIM_VERIFY_SSL',
    'cert_path': 'WSO2APIM_CERT_PATH',
    'timeout': 'WSO2APIM_TIMEOUT',
}


def load_connection_config(dotenv_path: Optional[str] = None, **overrides) -> ConnectionConfig:
    """Build a ConnectionConfig from WSO2APIM_* environment variables.

    A ``.env`` file is read first (without overriding variables already set);
    keyword arguments win over both.
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))

    values: Dict[str, str] = {}
    for field, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None and value != '':
            values[field] = value
    values.update({k: v for k, v in overrides.items() if v is not None})

    missing = [ENV_VARS[f] for f in ('host', 'user', 'password') if f not in values]
    if missing:
        raise ValueError(f"Missing API Manager settings: {', '.join(missing)}")

    config = ConnectionConfig(**values)
    logger.debug(f"Loaded API Manager connection settings for {config.base_url} (API {config.version_slug})")
    return config
