import click

from pwnguard.services.breach_client import BreachLookupError
from pwnguard.utils.pwned_password import get_extension
from pwnguard.utils.pwned_policy import evaluate


def register_commands(app):

    @app.cli.group('pwned-password')
    def pwned_password_cli():
        """Pwned Passwords tools."""

    @pwned_password_cli.command('check')
    @click.option('--password', prompt=True, hide_input=True,
                  help='Password to look up (prompted when omitted).')
    def check(password):
        """Look up a password and show what registration and password change would decide."""
        ext = get_extension(app)
        try:
            count = ext.client.query(password, ext.settings.lookup_options)
        except BreachLookupError as e:
            click.echo(f'Lookup failed ({e.__class__.__name__}); the password would be accepted.')
            raise SystemExit(1)

        thresholds = ext.settings.thresholds
        click.echo(f'Occurrences: {count}')
        click.echo(f'New record: {evaluate(count, False, thresholds).value}')
        click.echo(f'Existing record: {evaluate(count, True, thresholds).value}')
        click.echo(f'Sign-in: {evaluate(count, True, thresholds, blocking=False).value}')

    @pwned_password_cli.command('settings')
    def show_settings():
        """Show the active breach-check settings."""
        settings = get_extension(app).settings
        click.echo(f'Check enabled: {settings.check_enabled}')
        click.echo(f'Check on sign-in: {settings.check_on_sign_in_enabled}')
        click.echo(f'Reject threshold: {settings.thresholds.reject}')
        click.echo(f'Warn threshold: {settings.thresholds.warn_or_reject}')
        click.echo(f'Timeouts (open/read): {settings.open_timeout}s/{settings.read_timeout}s')
