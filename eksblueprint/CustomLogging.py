from rich.console import Console
from rich.logging import RichHandler
import logging
import sys
import os
import watchtower
import boto3
from datetime import datetime

from dotenv import load_dotenv
load_dotenv('.env', override=False)

# Command output goes to stdout, log records to stderr
console = Console()
log_console = Console(stderr=True)

# Global variables to store the current CloudWatch handler and log group
cloudwatch_handler = None
current_log_group = None


def debug_enabled():
    """True when DEBUG holds "1", "true", "yes" or "on"; "false" and "0" stay at INFO."""
    return os.getenv("DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def default_log_group():
    environment = os.getenv("ENVIRONMENT")
    return f'eksblueprint/{environment}' if environment else 'eksblueprint'


def _get_aws_credentials():
    """Helper function to check and return AWS credentials.

    Returns:
        tuple: (access_key, secret_key, region, is_configured)
        where is_configured is a boolean indicating if all credentials are present
    """
    access_key = os.getenv('AWS_ACCESS_KEY_ID')
    secret_key = os.getenv('AWS_SECRET_ACCESS_KEY')
    region = os.getenv('AWS_REGION') or os.getenv('AWS_DEFAULT_REGION')

    is_configured = all([access_key, secret_key, region])
    return access_key, secret_key, region, is_configured


class BlueprintFormatter(logging.Formatter):
    def format(self, record):
        record.asctime = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        record.log_group = current_log_group or 'eksblueprint'
        return super().format(record)


def setup_logging(log_group=None, level=None, cloudwatch=True):
    """
    Configure the root logger with a Rich console handler and, when AWS
    credentials are present, a CloudWatch handler.

    :param log_group: CloudWatch log group (defaults to eksblueprint/{ENVIRONMENT})
    :param level: Log level; DEBUG env var selects debug when not given
    :param cloudwatch: Set False to keep logs local (tests, CLI previews)
    """
    global cloudwatch_handler, current_log_group

    log_group = log_group or default_log_group()
    current_log_group = log_group

    if cloudwatch_handler:
        logging.getLogger().removeHandler(cloudwatch_handler)
        cloudwatch_handler.close()
        cloudwatch_handler = None

    rich_handler = RichHandler(
        console=log_console,
        markup=False,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
        show_level=False,
    )
    rich_handler.setFormatter(BlueprintFormatter('%(asctime)s [%(log_group)s] [%(levelname)s] %(message)s'))

    handlers = [rich_handler]

    _, _, region, is_configured = _get_aws_credentials()

    # Only add CloudWatch handler if AWS credentials are available
    if cloudwatch and is_configured:
        try:
            stream_name = f"eksblueprint-{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}"
            cloudwatch_handler = watchtower.CloudWatchLogHandler(
                log_group_name=log_group,
                log_stream_name=stream_name,
                boto3_client=boto3.client('logs', region_name=region)
            )
            cloudwatch_handler.setFormatter(BlueprintFormatter())
            handlers.append(cloudwatch_handler)
        except Exception as e:
            logging.error(f"Error creating CloudWatch handler: {str(e)}")
            cloudwatch_handler = None

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if level is None:
        level = logging.DEBUG if debug_enabled() else logging.INFO
    root_logger.setLevel(level)

    for handler in handlers:
        root_logger.addHandler(handler)

    # Disable noisy loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('watchtower').setLevel(logging.WARNING)


__all__ = ['setup_logging', 'console']
