"""
Campsite Availability Sync - Configuration Management
Handles environment configuration with AWS SSM Parameter Store for production
and python-dotenv for local development.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()


class Config:
    """
    Configuration manager with dual-mode operation:
    - Local: Reads from .env file via python-dotenv
    - Production: Reads from AWS SSM Parameter Store
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration value from SSM (production) or environment (local).

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if self.environment == 'production':
            return self._get_from_ssm(key, default)
        else:
            return os.getenv(key, default)

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration from AWS SSM Parameter Store.

        Args:
            key: Parameter key name
            default: Default value if parameter not found

        Returns:
            Parameter value or default

        Raises:
            ConfigurationError: If parameter not found and no default provided,
                               or if AWS credentials/permissions are invalid
        """
        ssm_prefix = os.getenv('AWS_SSM_PREFIX', '/campsite-sync')
        parameter_name = f"{ssm_prefix}/{key}"

        try:
            if self._ssm_client is None:
                import boto3
                self._ssm_client = boto3.client(
                    'ssm',
                    region_name=os.getenv('AWS_REGION', 'us-west-2')
                )

            response = self._ssm_client.get_parameter(
                Name=parameter_name,
                WithDecryption=True
            )
            return response['Parameter']['Value']

        except Exception as e:
            error_type = type(e).__name__
            if error_type == 'ParameterNotFound' and default is None:
                raise ConfigurationError(
                    f"Required parameter '{key}' not found in SSM at path '{parameter_name}'. "
                    f"Please create the parameter or provide a default value."
                )
            if default is not None:
                import logging
                logging.warning(
                    f"Failed to fetch SSM parameter '{key}': {error_type}: {e}. "
                    f"Using default value."
                )
                return default
            raise ConfigurationError(
                f"Failed to fetch parameter '{key}' from SSM: {error_type}: {e}. "
                f"Check AWS credentials, IAM permissions, and network connectivity."
            )

    def get_int(self, key: str, default: int) -> int:
        """
        Get configuration value as integer.

        Args:
            key: Configuration key name
            default: Default value if key not found or conversion fails

        Returns:
            Integer value or default
        """
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            import logging
            logging.warning(
                f"Invalid integer for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_float(self, key: str, default: float) -> float:
        """Get configuration value as float, falling back to default on bad input."""
        value = self.get(key, str(default))
        try:
            return float(value)
        except (ValueError, TypeError) as e:
            import logging
            logging.warning(
                f"Invalid float for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """
        Get configuration value as boolean.

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Boolean value or default
        """
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        """Check if running in local development environment."""
        return self.environment == 'local'


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


# Global configuration instance
config = Config()


# Database configuration
DB_HOST = config.get('DB_HOST', 'localhost')
DB_PORT = config.get_int('DB_PORT', 3306)
DB_NAME = config.get('DB_NAME', 'campsite_agent_dev')
DB_USER = config.get('DB_USER', 'root')
DB_PASSWORD = config.get('DB_PASSWORD', '')

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')

# ReserveCalifornia / UseDirect API configuration
RC_BASE_URL = config.get('RC_BASE_URL', 'https://www.reservecalifornia.com')
RDR_BASE_URL = config.get('RDR_BASE_URL', 'https://calirdr.usedirect.com/rdr/rdr')
RC_USER_AGENT = config.get('RC_USER_AGENT', 'CampsiteAgent/1.0 (+http://campsiteagent.com)')
RC_CONNECT_TIMEOUT = config.get_float('RC_CONNECT_TIMEOUT', 10.0)
RC_TIMEOUT = config.get_float('RC_TIMEOUT', 15.0)

# Retry policy: 0.25s, 0.5s, 1s ... capped at RETRY_BACKOFF_MAX
MAX_RETRY_ATTEMPTS = config.get_int('MAX_RETRY_ATTEMPTS', 3)
RETRY_BACKOFF_MULTIPLIER = config.get_float('RETRY_BACKOFF_MULTIPLIER', 0.25)
RETRY_BACKOFF_MAX = config.get_float('RETRY_BACKOFF_MAX', 4.0)

# Fetch channel selection: 'auto', 'direct' or 'browser'
FETCH_MODE = config.get('FETCH_MODE', 'auto')
PREFER_BROWSER_SCRAPER = config.get_bool('PREFER_BROWSER_SCRAPER', False)
NODE_PATH = config.get('NODE_PATH', '')
BROWSER_SCRAPER_SCRIPT = config.get('BROWSER_SCRAPER_SCRIPT', 'bin/scrape-via-browser.js')
BROWSER_SCRAPER_TIMEOUT = config.get_int('BROWSER_SCRAPER_TIMEOUT', 60)

# Sync settings
MONTHS_TO_SCRAPE = config.get_int('MONTHS_TO_SCRAPE', 6)
MAX_FUTURE_DAYS = config.get_int('MAX_FUTURE_DAYS', 730)

# Database connection pool settings
DB_POOL_SIZE = 5
DB_POOL_MAX_OVERFLOW = 10
DB_POOL_RECYCLE = 3600  # Recycle connections after 1 hour
DB_POOL_PRE_PING = True  # Health check connections before use
