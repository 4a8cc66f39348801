"""
Command Line Interface for dcmodel.
"""
import logging
import os

import click
from jinja2 import Template

from ..CONVERTERS.to_node_tree import DocumentSerializer
from ..CONVERTERS.to_yaml import FORMATS, TextConverter
from ..errors import ComposeError, format_path
from ..MANAGERS.environment_manager import EnvironmentManager
from ..MANAGERS.interpolation_engine import InterpolationEngine
from ..MANAGERS.merge_engine import MergeEngine
from ..MODELS.parser_options import ParserOptions
from ..PARSERS.compose_parser import ComposeParser
from ..SCHEMA.registry import known_versions
from ..SCHEMA.validator import check_image_sources, check_references
from ..UTILS.logging_utils import configure_logging
from ..UTILS.string_interpolation import InterpolationMode

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = """
{%- for file, errors in results %}
{{ file }}: {% if errors %}{{ errors | length }} violation(s){% else %}ok{% endif %}
{%- for error in errors %}
  {{ error.location }}: {{ error.message }} [{{ error.rule }}]
{%- endfor %}
{%- endfor %}
{%- if references is not none %}
merged: {% if references %}{{ references | length }} violation(s){% else %}ok{% endif %}
{%- for error in references %}
  {{ error.location }}: {{ error.message }} [{{ error.rule }}]
{%- endfor %}
{%- endif %}
"""


def _report_rows(errors):
    return [
        {"location": format_path(error.path), "message": error.message, "rule": error.rule}
        for error in errors
    ]


def _fail(ctx, error):
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


@click.group()
@click.option('--file', '-f', 'files', multiple=True, envvar='DCMODEL_FILE',
              help='Compose file path; repeat to add override layers')
@click.option('--verbose', '-v', is_flag=True, envvar='DCMODEL_VERBOSE', help='Show debug output')
@click.option('--strict', is_flag=True, envvar='DCMODEL_STRICT', help='Treat unknown keys as violations')
@click.pass_context
def cli(ctx, files, verbose, strict):
    """
    dcmodel - typed model for docker-compose documents.

    Validates, merges and re-emits compose files in canonical form.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['files'] = list(files) or ['docker-compose.yml']
    ctx.obj['options'] = ParserOptions(strict_unknown_keys=strict)


@cli.command()
@click.option('--resolve', is_flag=True, envvar='DCMODEL_RESOLVE', help='Substitute variables')
@click.option('--strict-variables', is_flag=True, envvar='DCMODEL_STRICT_VARIABLES',
              help='Fail on unset variables instead of using a blank string')
@click.option('--env-file', 'env_files', multiple=True, envvar='DCMODEL_ENV_FILE',
              help='.env file with variable values; defaults to .env next to the first file')
@click.option('--standalone', is_flag=True, envvar='DCMODEL_STANDALONE',
              help='Substitute variables and copy env_file entries into environment')
@click.option('--format', 'output_format', type=click.Choice(FORMATS), default='yaml',
              envvar='DCMODEL_FORMAT', help='Output format')
@click.pass_context
def config(ctx, resolve, strict_variables, env_files, standalone, output_format):
    """
    Print the merged document in canonical form.

    With --standalone the output is still a compose file, with no
    references to variables or .env files left in it.
    """
    files = ctx.obj['files']
    try:
        document = ComposeParser(ctx.obj['options']).parse_many(files)
        variables = None
        if resolve or standalone:
            if not env_files:
                default_env = os.path.join(os.path.dirname(files[0]), '.env')
                env_files = [default_env] if os.path.exists(default_env) else []
            variables = EnvironmentManager().get_variables(env_files)
        mode = InterpolationMode.STRICT if strict_variables else InterpolationMode.LENIENT
        if standalone:
            document = InterpolationEngine(variables, mode).resolve_document(document)
            document = EnvironmentManager(os.path.dirname(files[0]) or '.').inline_env_files(document)
            tree = DocumentSerializer().serialize(document)
        else:
            tree = DocumentSerializer().serialize(document, variables, mode)
    except (ComposeError, OSError) as e:
        _fail(ctx, e)
    click.echo(TextConverter(output_format).convert(tree), nl=False)


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate every file, then the merged result."""
    parser = ComposeParser(ctx.obj['options'])
    results = []
    documents = []
    try:
        for i, path in enumerate(ctx.obj['files']):
            logger.info("Validating %s", path)
            tree = parser.loader.load_file(path)
            errors = parser.validate(tree, layer=i > 0)
            results.append((path, _report_rows(errors)))
            if not errors:
                documents.append(parser.parse_node_tree(tree, layer=i > 0))
        references = None
        if len(documents) == len(results):
            merged = MergeEngine().merge(documents)
            references = _report_rows(check_image_sources(merged) + check_references(merged))
    except (ComposeError, OSError) as e:
        _fail(ctx, e)

    click.echo(Template(REPORT_TEMPLATE).render(results=results, references=references).strip())
    if any(errors for _, errors in results) or references:
        ctx.exit(1)


@cli.command()
@click.pass_context
def services(ctx):
    """List service names of the merged document"""
    try:
        document = ComposeParser(ctx.obj['options']).parse_many(ctx.obj['files'])
    except (ComposeError, OSError) as e:
        _fail(ctx, e)
    for name in document.services:
        click.echo(name)


@cli.command()
def versions():
    """List supported compose file versions"""
    for version in known_versions():
        click.echo(version)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
