import io

from rich.console import Console
from rich.table import Table


def visualize_tree_rich(tree_gen, output_file=None):
    console = Console(record=True, soft_wrap=True, file=io.StringIO())

    _visualize_tree_rich(tree_gen, console=console)
    # Export everything as plain text (no colors)
    text_output = console.export_text(styles=False)

    if output_file:
        with open(output_file, "w") as f:
            f.write(text_output)

    return text_output


def _visualize_tree_rich(tree_gen, console):
    """Pretty print the level arena, bottom level first, with cut markers."""
    top = tree_gen.top

    console.print(f"\n[bold]Reduction Tree[/bold] {top.module_name} "
                  f"({top.width} -> {top.padded_width} entries)")
    console.print("[red]|[/red] = register cut before the level combiner\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Level", justify="right")
    table.add_column("Module")
    table.add_column("Entries", justify="right")
    table.add_column("Index bits", justify="right")
    table.add_column("Instances", justify="right")
    table.add_column("Cut", justify="center")

    for level in sorted(tree_gen.units):
        unit = tree_gen.units[level]
        table.add_row(
            str(level),
            unit.module_name,
            str(unit.input_width),
            str(unit.index_width),
            str(tree_gen.instance_count(level)),
            "[red]|[/red]" if unit.register_cut else "",
        )
    table.add_row(
        "top",
        top.module_name,
        str(top.width),
        str(top.index_width),
        "1",
        "",
    )
    console.print(table)

    stages = []
    if top.register_inputs:
        stages.append("in-reg")
    for level in sorted(tree_gen.units):
        if tree_gen.units[level].register_cut:
            stages.append(f"cut@L{level}")
    if top.register_outputs:
        stages.append("out-reg")
    console.print(f"Registers: {', '.join(stages) if stages else 'none (combinational)'}")
    console.print(f"Latency: {tree_gen.latency} cycle(s)")
