import os
import shutil
import tempfile

import click

from .config import ConfigManager
from .container import container
from .errors import AppError
from .services.transaction_service import ReconciliationResult, spreadsheet_link
from .utils.error_handling import exit_gracefully


def _validate_credentials(require_telegram: bool) -> None:
    try:
        container.credentials_manager().validate(require_telegram=require_telegram)
    except AppError as e:
        exit_gracefully(e, 1)


def _echo_result(result: ReconciliationResult) -> None:
    spreadsheet_id = container.credentials_manager().get_spreadsheet_id()
    click.echo(result.to_message(spreadsheet_link(spreadsheet_id)))


@click.group()
@click.option('--log-level', default=None, help='Override LOG_LEVEL for this run')
def cli(log_level=None):
    """Money Tracker: receipts and messages to a Google Sheets ledger"""
    try:
        ConfigManager().setup_logging(log_level)
    except AppError as e:
        exit_gracefully(e, 1)


@cli.command()
def run():
    """Start the Telegram bot and poll for updates"""
    _validate_credentials(require_telegram=True)
    try:
        application = container.telegram_application()
    except AppError as e:
        exit_gracefully(e, 1)
    click.echo("Money tracker bot is running. Press Ctrl+C to stop.")
    application.run_polling(drop_pending_updates=True)


@cli.command('extract-text')
@click.argument('message')
@click.option('--user', default='cli', show_default=True, help='Uploader recorded as created_by')
def extract_text(message, user):
    """Extract a transaction from MESSAGE and save it to the ledger"""
    _validate_credentials(require_telegram=False)
    try:
        result = container.transaction_service().process_text(message, user)
    except AppError as e:
        raise click.ClickException(str(e))
    _echo_result(result)


@cli.command('extract-image')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--user', default='cli', show_default=True, help='Uploader recorded as created_by')
def extract_image(path, user):
    """Extract a transaction from the receipt image at PATH and save it"""
    _validate_credentials(require_telegram=False)
    # the pipeline consumes its input, so hand it a copy
    with tempfile.TemporaryDirectory() as workdir:
        working_copy = os.path.join(workdir, os.path.basename(path))
        shutil.copyfile(path, working_copy)
        try:
            result = container.transaction_service().process_image(working_copy, user)
        except AppError as e:
            raise click.ClickException(str(e))
    _echo_result(result)


if __name__ == '__main__':
    cli()
