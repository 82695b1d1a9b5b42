import click
from sqlalchemy.exc import IntegrityError
from database import db
from database.init_db import seed_sample_data, reset_db, describe_table, list_tables


def setup_commands(app):

  @app.cli.command("init-db")
  @click.option("--no-seed", is_flag=True, help="Create tables without the sample rows.")
  def init_db_command(no_seed):
    """Create missing tables and insert the sample rows."""
    db.create_all()
    if not no_seed:
      _seed_or_fail()
    click.echo("Database initialised.")

  @app.cli.command("reset-db")
  @click.option("--no-seed", is_flag=True, help="Leave the tables empty.")
  @click.confirmation_option(prompt="This deletes every row in every table. Continue?")
  def reset_db_command(no_seed):
    """Drop and recreate every table."""
    reset_db(seed=not no_seed)
    click.echo("Database reset.")

  @app.cli.command("list-tables")
  def list_tables_command():
    for name in list_tables():
      click.echo(name)

  @app.cli.command("describe")
  @click.argument("table_name")
  def describe_command(table_name):
    """Show columns and indexes of TABLE_NAME."""
    try:
      info = describe_table(table_name)
    except LookupError as e:
      raise click.ClickException(str(e))

    click.echo(f"{'Field':<28}{'Type':<22}{'Null':<6}{'Key':<5}Default")
    for column in info['columns']:
      click.echo(
        f"{column['name']:<28}{column['type']:<22}"
        f"{'YES' if column['nullable'] else 'NO':<6}"
        f"{'PRI' if column['primary_key'] else '':<5}"
        f"{column['default'] if column['default'] is not None else 'NULL'}"
      )

    if info['indexes']:
      click.echo("")
      click.echo("Indexes:")
      for index in info['indexes']:
        unique = "unique" if index['unique'] else "non-unique"
        click.echo(f"  {index['name'] or '(unnamed)'} ({', '.join(index['columns'])}) {unique}")


def _seed_or_fail():
  try:
    return seed_sample_data()
  except IntegrityError as e:
    db.session.rollback()
    raise click.ClickException(f"Seeding failed: {e.orig}")
