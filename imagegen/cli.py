"""Flask CLI commands for running and maintaining the tool server."""
import json
import click
from flask import current_app


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create the generation tables."""
        from imagegen.extensions import db

        db.create_all()
        click.echo(f"Database ready at {current_app.config['SQLALCHEMY_DATABASE_URI']}")

    @app.cli.command("serve")
    def serve():
        """Run the MCP tool server on stdio."""
        from imagegen.server import serve as serve_stdio

        serve_stdio(current_app._get_current_object())

    @app.cli.command("costs")
    @click.option(
        "--period",
        type=click.Choice(["day", "week", "month", "all"]),
        default="month",
        show_default=True,
    )
    def costs(period):
        """Show spend for a period."""
        from imagegen.context import get_context
        from imagegen.workflows.reports import get_costs

        report = get_costs(get_context(current_app), period=period)
        click.echo(f"{period}: ${report['total']:.2f} over {report['generation_count']} generations")
        for provider, total in sorted(report["by_provider"].items()):
            click.echo(f"  {provider}: ${total:.2f}")
        if "budget_percent" in report:
            click.echo(
                f"Budget: {report['budget_percent']}% of ${report['budget_limit']:.2f}"
            )

    @app.cli.command("cleanup")
    @click.option("--older-than-days", type=int, default=None)
    @click.option("--dry-run", is_flag=True)
    def cleanup(older_than_days, dry_run):
        """Delete stale preview directories."""
        from imagegen.context import get_context
        from imagegen.workflows.retention import cleanup_previews

        result = cleanup_previews(
            get_context(current_app), older_than_days=older_than_days, dry_run=dry_run
        )
        click.echo(json.dumps(result, indent=2))

    @app.cli.command("check-storage")
    def check_storage():
        """Verify the configured blob store is reachable."""
        from imagegen.context import get_context

        storage = get_context(current_app).storage
        if storage.health_check():
            click.echo(f"Storage '{storage.name}' is reachable.")
        else:
            raise click.ClickException(f"Storage '{storage.name}' is not reachable.")
