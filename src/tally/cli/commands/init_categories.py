"""Initialize default families and categories."""

import click
from tally.domain.category import CategoryService
from tally.domain.entities import Nature


# Default families with their categories
INITIAL_FAMILIES = [
    ("Housing", Nature.EXPENSE, ["Rent/Mortgage", "Electricity & Gas"]),
    ("Food", Nature.EXPENSE, ["Groceries", "Restaurants"]),
    ("Vehicle", Nature.EXPENSE, ["Fuel", "Maintenance"]),
    ("Work Income", Nature.INCOME, ["Monthly Salary"]),
    ("Investments", Nature.INCOME, ["Dividends"]),
]


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Add defaults even if families already exist")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize database with default families and categories."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    if service.list_families() and not force:
        click.echo("Families already exist. Use --force to add the defaults anyway.")
        return

    click.echo("Creating default families and categories...")

    created = 0
    errors = 0

    for family_name, nature, category_names in INITIAL_FAMILIES:
        family = service.get_family_by_name(family_name)
        if family is None:
            try:
                family_id = service.create_family(name=family_name, nature=nature)
                created += 1
            except ValueError as e:
                click.echo(f"Warning: Could not create family '{family_name}': {e}", err=True)
                errors += 1
                continue
        else:
            family_id = family.id

        for category_name in category_names:
            try:
                service.create_category(name=category_name, family_id=family_id)
                created += 1
            except ValueError as e:
                click.echo(f"Warning: Could not create category '{category_name}': {e}", err=True)
                errors += 1

    if errors == 0:
        click.echo(f"Successfully created {created} families and categories.")
    else:
        click.echo(f"Created {created} families and categories with {errors} errors.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
