"""Family and category management commands."""

import click
from tally.cli.account_resolution import load_ledger_or_exit, resolve_category_or_exit
from tally.cli.error_handling import handle_domain_error
from tally.domain.category import CategoryService
from tally.domain.entities import Nature
from tally.domain.errors import DomainError
from tally.utils.account_resolver import resolve_family


@click.group()
def family_group():
    """Manage families (top-level income and expense groups)."""
    pass


@family_group.command("create")
@click.argument("name")
@click.option(
    "--nature",
    type=click.Choice(["income", "expense"], case_sensitive=False),
    required=True,
    help="Whether the family groups income or expenses",
)
@click.pass_context
def create_family(ctx, name: str, nature: str):
    """Create a family.

    Examples:
        tally family create "Housing" --nature expense
        tally family create "Work Income" --nature income
    """
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        family_id = service.create_family(name=name, nature=Nature(nature.upper()))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created family '{name}' (ID: {family_id})")


@family_group.command("list")
@click.pass_context
def list_families(ctx):
    """List families."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    families = service.list_families()
    if not families:
        click.echo("No families found. Use 'tally init-categories' to create defaults.")
        return

    for family in families:
        click.echo(f"{family.name:30s} {family.nature.value}")


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("create")
@click.argument("name")
@click.option("--family", "family_ref", required=True, help="Family name or ID")
@click.pass_context
def create_category(ctx, name: str, family_ref: str):
    """Create a category inside a family.

    Examples:
        tally category create "Rent" --family "Housing"
    """
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        family = resolve_family(service.list_families(), family_ref)
        category_id = service.create_category(name=name, family_id=family.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created category '{name}' in '{family.name}' (ID: {category_id})")


@category_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide archived categories")
@click.pass_context
def list_categories(ctx, active_only: bool):
    """List categories grouped by family."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    tree = service.get_family_tree()
    if not tree:
        click.echo("No categories found. Use 'tally init-categories' to create defaults.")
        return

    for family, categories in tree:
        click.echo(f"{family.name} ({family.nature.value.lower()})")
        for cat in categories:
            if active_only and not cat.active:
                continue
            status = "" if cat.active else " (archived)"
            click.echo(f"    {cat.name}{status}")


@category_group.command("archive")
@click.argument("category")
@click.option("--restore", is_flag=True, help="Make an archived category active again")
@click.pass_context
def archive_category(ctx, category: str, restore: bool):
    """Archive a category, hiding it from new entries and suggestions."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    _, index = load_ledger_or_exit(ctx, db)
    cat = resolve_category_or_exit(ctx, index, category)

    try:
        service.set_active(cat.id, active=restore)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{'Restored' if restore else 'Archived'} category '{cat.name}'")


@category_group.command("usage")
@click.argument("category")
@click.pass_context
def category_usage(ctx, category: str):
    """Show how many transactions use a category."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    _, index = load_ledger_or_exit(ctx, db)
    cat = resolve_category_or_exit(ctx, index, category)

    click.echo(f"Category '{cat.name}' is used by {service.usage_count(cat.id)} transaction(s)")


@category_group.command("delete")
@click.argument("category")
@click.pass_context
def delete_category(ctx, category: str):
    """Delete a category.

    The category can only be deleted if no transaction uses it.
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    _, index = load_ledger_or_exit(ctx, db)
    cat = resolve_category_or_exit(ctx, index, category)

    try:
        service.delete_category(cat.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted category '{cat.name}'")


def register_commands(cli):
    """Register family and category commands with main CLI."""
    cli.add_command(family_group, name="family")
    cli.add_command(category_group, name="category")
