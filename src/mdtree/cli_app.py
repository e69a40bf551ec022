import typer

from mdtree import load
from mdtree.models import walk_blocks

app = typer.Typer()


def _first_line(text: str, width: int = 60) -> str:
    line = text.strip().split("\n", 1)[0] if text.strip() else ""
    return line if len(line) <= width else line[: width - 3] + "..."


@app.command("outline")
def outline(path: str):
    """Print sections, subsections, blocks and fields of a markdown file."""
    doc = load(path)
    for key, value in doc.header.items():
        typer.echo(f"{key}: {value}")
    for section in doc.sections:
        typer.echo(f"[{section.index}] section {section.name or '(unnamed)'}")
        for sub in section.subsections:
            if sub.is_default:
                continue
            typer.echo(f"  sub {sub.name}")
        for block in walk_blocks(section.blocks):
            indent = "  " * (block.level or 1)
            title = block.heading.text if block.heading is not None else "(orphan)"
            typer.echo(f"{indent}{'#' * (block.level or 0)} {title}".rstrip())
        for field in section.field_list:
            typer.echo(f"  field {field.name} <{field.type.value}> {_first_line(field.text)}")


@app.command("dump")
def dump(path: str, indent: int = 2):
    """Print the parsed tree of a markdown file as JSON."""
    doc = load(path)
    typer.echo(doc.model_dump_json(indent=indent))


if __name__ == "__main__":
    app()
