#!/usr/bin/env python3
"""
Graphviz DOT Generator for Quaternary Arg-Min Trees
Layout: top module on TOP, leaf level at the BOTTOM
"""


class GraphvizGenerator:
    def __init__(self, tree_gen):
        """
        Initialize with a PriorityEncoderGenerator instance

        Args:
            tree_gen: PriorityEncoderGenerator holding the level arena and top assembly
        """
        self.gen = tree_gen
        self.units = tree_gen.units
        self.top = tree_gen.top

    def generate_dot(self):
        """Generate a Graphviz DOT diagram of the module hierarchy"""
        lines = []

        lines.extend(self._generate_header())
        lines.extend(self._generate_top())

        for level in sorted(self.units, reverse=True):
            lines.extend(self._generate_level(level))

        lines.append("}")
        return "\n".join(lines) + "\n"

    def _generate_header(self):
        """Generate DOT file header and styling"""
        return [
            "digraph ArgMinTree {",
            "  rankdir=TB;",
            "  node [shape=box, style=filled, fontname=\"Arial\"];",
            "  edge [fontname=\"Arial\", fontsize=10];",
            "",
        ]

    def _generate_top(self):
        top = self.top
        label = f"{top.module_name}\\n{top.width} entries, {top.index_width}-bit index"
        if top.padding:
            label += f"\\n+{top.padding} padding"
        lines = [f'  top [label="{label}", fillcolor=lightblue];']

        if top.register_inputs:
            lines.append('  in_reg [label="input register", shape=box3d, fillcolor=salmon];')
            lines.append("  in_reg -> top;")
        if top.register_outputs:
            lines.append('  out_reg [label="output register", shape=box3d, fillcolor=salmon];')
            lines.append("  top -> out_reg;")

        lines.append(f"  top -> L{top.root_level};")
        lines.append("")
        return lines

    def _generate_level(self, level):
        unit = self.units[level]
        color = "lightgray" if unit.is_leaf else "white"
        label = (
            f"{unit.module_name}\\n{unit.input_width} entries, "
            f"{unit.index_width}-bit index\\nx{self.gen.instance_count(level)}"
        )
        lines = [f'  L{level} [label="{label}", fillcolor={color}];']

        if unit.child_level is not None:
            style = "color=red, penwidth=3.0" if unit.register_cut else "color=blue"
            lines.append(f'  L{level} -> L{unit.child_level} [label="x4", {style}];')
        lines.append("")
        return lines


def generate_graphviz(tree_gen, output_file=None):
    """Write the DOT diagram for a PriorityEncoderGenerator and return it"""
    dot = GraphvizGenerator(tree_gen).generate_dot()

    if output_file:
        with open(output_file, "w") as f:
            f.write(dot)

    return dot
