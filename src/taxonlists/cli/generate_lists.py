"""CLI for generating wikitext taxon lists.

This script loads a record export, the list definitions and the taxon rules, then
writes one wikitext document per list to the output directory.
"""

import sys
from pathlib import Path

import click

from taxonlists.config.manager import ConfigManager
from taxonlists.config.models import ListConfigurationError, ListDefinition
from taxonlists.lists.generator import ListGenerator
from taxonlists.lists.templates import TemplateRenderer
from taxonlists.rules.legacy import LegacyTaxaRuleList
from taxonlists.rules.taxon_rules import TaxonRulesService
from taxonlists.species.name_store import InMemoryNameStore, InMemoryRedirectCache
from taxonlists.species.source import load_records
from taxonlists.system.path_resolver import PathResolver
from taxonlists.system.structlog_configurator import configure_structlog

PathOption = click.Path(path_type=Path)
ExistingPath = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Taxon list generator.

    Build grouped, named wikitext lists of assessed taxa.
    """
    ctx.ensure_object(dict)
    ctx.obj["path_resolver"] = PathResolver()


def _select_lists(lists: list[ListDefinition], wanted: tuple[str, ...]) -> list[ListDefinition]:
    """Pick the requested lists by id, failing on unknown ids."""
    if not wanted:
        return lists

    by_id = {definition.id.lower(): definition for definition in lists}
    missing = [list_id for list_id in wanted if list_id.lower() not in by_id]
    if missing:
        raise click.BadParameter(f"Unknown list id(s): {', '.join(missing)}", param_hint="--list")
    return [by_id[list_id.lower()] for list_id in wanted]


def _load_legacy(path: Path) -> LegacyTaxaRuleList | None:
    if not path.exists():
        click.echo(click.style(f"No legacy rules at {path}, skipping", fg="yellow"))
        return None
    return LegacyTaxaRuleList.load(path)


@cli.command()
@click.option("--config", "lists_path", type=PathOption, help="Lists definition YAML")
@click.option("--records", "records_path", type=ExistingPath, required=True, help="Record export")
@click.option("--rules", "rules_path", type=PathOption, help="Structured taxon rules YAML")
@click.option("--legacy-rules", "legacy_path", type=PathOption, help="Legacy rules-list.txt")
@click.option("--names", "names_path", type=ExistingPath, help="Common-name store snapshot")
@click.option("--redirects", "redirects_path", type=ExistingPath, help="Redirect cache snapshot")
@click.option("--templates", "templates_dir", type=PathOption, help="Header/footer templates")
@click.option("--output-dir", type=PathOption, help="Directory for generated documents")
@click.option("--list", "list_ids", multiple=True, help="Only generate this list (repeatable)")
@click.option("--limit", type=click.IntRange(min=1), help="Limit records per list (previews)")
@click.option("--allow-ambiguous", is_flag=True, help="Accept ambiguous common names")
@click.pass_context
def generate(
    ctx: click.Context,
    lists_path: Path | None,
    records_path: Path,
    rules_path: Path | None,
    legacy_path: Path | None,
    names_path: Path | None,
    redirects_path: Path | None,
    templates_dir: Path | None,
    output_dir: Path | None,
    list_ids: tuple[str, ...],
    limit: int | None,
    allow_ambiguous: bool,
) -> None:
    """Generate wikitext lists.

    Examples:
      # Generate every configured list
      taxonlists generate --records data/records.yml

      # Preview one list with the first 50 records
      taxonlists generate --records data/records.yml --list mammals-cr --limit 50
    """
    path_resolver: PathResolver = ctx.obj["path_resolver"]
    config_manager = ConfigManager(path_resolver)

    try:
        config = config_manager.load()
        if allow_ambiguous:
            config = config.model_copy(update={"allow_ambiguous_names": True})
        configure_structlog(config)

        lists_config = config_manager.load_lists(lists_path)
        rules = TaxonRulesService(config_manager.load_taxon_rules(rules_path))
        legacy = _load_legacy(legacy_path or path_resolver.get_legacy_rules_path())
        record_set = load_records(records_path)

        generator = ListGenerator(
            rules=rules,
            legacy=legacy,
            name_store=InMemoryNameStore.from_yaml(names_path) if names_path else None,
            redirects=InMemoryRedirectCache.from_yaml(redirects_path) if redirects_path else None,
            templates=TemplateRenderer(templates_dir or path_resolver.get_templates_dir()),
            config=config,
        )
        definitions = _select_lists(lists_config.lists, list_ids)
    except (ListConfigurationError, FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"✗ Configuration error: {e}", fg="red", bold=True), err=True)
        sys.exit(1)

    destination = output_dir or path_resolver.get_output_dir()
    destination.mkdir(parents=True, exist_ok=True)

    failures = 0
    for definition in definitions:
        try:
            result = generator.generate(
                definition,
                lists_config.defaults,
                record_set.records,
                record_set.dataset_version,
                limit=limit,
            )
        except ListConfigurationError as e:
            failures += 1
            click.echo(click.style(f"✗ {definition.id}: {e}", fg="red"), err=True)
            continue

        output_path = destination / definition.output_file
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.document, encoding="utf-8")
        click.echo(
            click.style(f"✓ {definition.id}", fg="green")
            + f": {result.total_entries} entries, {result.heading_count} headings"
            + f" (dataset {result.dataset_version}) -> {output_path}"
        )

    if failures:
        click.echo(click.style(f"{failures} list(s) failed", fg="red", bold=True), err=True)
        sys.exit(1)


def main() -> None:
    """Entry point for the list generator CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
