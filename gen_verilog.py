#!/usr/bin/env python3
"""
SystemVerilog Generator for Quaternary Arg-Min Trees
"""


class VerilogGenerator:
    def __init__(self, tree_gen):
        """
        Initialize with a PriorityEncoderGenerator instance

        Args:
            tree_gen: PriorityEncoderGenerator holding the level arena and top assembly
        """
        self.gen = tree_gen
        self.spec = tree_gen.spec
        self.units = tree_gen.units
        self.top = tree_gen.top
        self.p = tree_gen.prefix_width
        self.mux = tree_gen.mux

    def generate_module(self):
        """Generate every level module (leaf first) followed by the top module"""
        lines = []

        lines.extend(self._generate_header())

        for level in sorted(self.units):
            unit = self.units[level]
            if unit.is_leaf:
                lines.extend(self._generate_leaf_module(unit))
            else:
                lines.extend(self._generate_level_module(unit))

        lines.extend(self._generate_top_module())

        return "\n".join(lines) + "\n"

    def _generate_header(self):
        """Generate file header comment"""
        cmd = self.spec.max_comb_depth
        lines = [
            "//",
            f"// Quaternary Arg-Min Tree: {self.top.module_name}",
            f"// Entries: {self.top.width} (padded to {self.top.padded_width})",
            f"// Payload Width: {self.p} bits",
            f"// Index Width: {self.top.index_width} bits",
            f"// Tree Levels: {self.top.levels}",
            f"// Max Combinational Depth: {'unbounded' if cmd is None else cmd}",
            f"// Mux Style: {self.spec.mux_style.value}",
            f"// Registered Inputs: {'yes' if self.top.register_inputs else 'no'}",
            f"// Registered Outputs: {'yes' if self.top.register_outputs else 'no'}",
            f"// Pipeline Latency: {self.gen.latency} cycle(s)",
            "// Auto-generated by encoder_tree.py",
            "//",
            "",
        ]
        return lines

    def _generate_ports(self, name, clocked, n_inputs, idx_width):
        lines = [f"module {name} ("]
        if clocked:
            lines.extend(["    input  logic clk,", "    input  logic rst,"])
        lines.extend(
            [
                f"    input  logic [{n_inputs-1}:0] valid_in,",
                f"    input  logic [{n_inputs-1}:0][{self.p-1}:0] payload_in,",
                f"    output logic [{idx_width-1}:0] index,",
                f"    output logic [{self.p-1}:0] payload,",
                "    output logic valid",
                ");",
                "",
            ]
        )
        return lines

    def _generate_compare4(self, key):
        """Pairwise then final compare over a packed [3:0] key array"""
        kw = self.p + 1
        return [
            "    // Pairwise minima; the later operand wins only when strictly smaller",
            "    logic b_lo, b_hi, hi_won;",
            f"    logic [{kw-1}:0] m_lo, m_hi, m_win;",
            "    logic [1:0] sel;",
            "",
            f"    assign b_lo = {key}[1] < {key}[0];",
            f"    assign m_lo = b_lo ? {key}[1] : {key}[0];",
            f"    assign b_hi = {key}[3] < {key}[2];",
            f"    assign m_hi = b_hi ? {key}[3] : {key}[2];",
            "    assign hi_won = m_hi < m_lo;",
            "    assign m_win = hi_won ? m_hi : m_lo;",
            "    assign sel = {hi_won, hi_won ? b_hi : b_lo};",
            "",
        ]

    def _generate_keys(self, valid, payload):
        kw = self.p + 1
        lines = [
            "    // Augmented keys {invalid, payload}: invalid entries rank last",
            f"    logic [3:0][{kw-1}:0] key;",
        ]
        for i in range(4):
            lines.append(f"    assign key[{i}] = {{~{valid}[{i}], {payload}[{i}]}};")
        lines.append("")
        return lines

    def _generate_leaf_module(self, unit):
        """Level 1: compare-and-select over four raw entries"""
        lines = [f"// Level {unit.level}: 4 entries, {unit.index_width}-bit index"]
        lines.extend(
            self._generate_ports(unit.module_name, unit.clocked, unit.input_width, unit.index_width)
        )
        lines.extend(self._generate_keys("valid_in", "payload_in"))
        lines.extend(self._generate_compare4("key"))
        lines.extend(
            [
                "    assign index = sel;",
                f"    assign payload = m_win[{self.p-1}:0];",
                "    assign valid = |valid_in;",
                "endmodule",
                "",
            ]
        )
        return lines

    def _generate_level_module(self, unit):
        """Level k >= 2: four level k-1 children, optional cut, level combiner"""
        child = self.units[unit.child_level]
        ciw = child.index_width
        quarter = child.input_width

        lines = [
            f"// Level {unit.level}: {unit.input_width} entries, {unit.index_width}-bit index"
        ]
        lines.extend(
            self._generate_ports(unit.module_name, unit.clocked, unit.input_width, unit.index_width)
        )

        lines.extend(
            [
                "    // Child outputs",
                f"    logic [3:0][{ciw-1}:0] child_index_d;",
                f"    logic [3:0][{self.p-1}:0] child_payload_d;",
                "    logic [3:0] child_valid_d;",
                "",
            ]
        )
        lines.extend(self._generate_children(child, quarter))
        lines.extend(self._generate_cut(unit, ciw))

        lines.extend(self._generate_keys("child_valid", "child_payload"))
        lines.extend(self._generate_compare4("key"))

        lines.extend(
            [
                f"    // Level combiner ({self.mux.style.value})",
                f"    logic [{ciw-1}:0] sel_index;",
                f"    logic [{self.p-1}:0] sel_payload;",
                "",
            ]
        )
        lines.extend(
            self.mux.render(
                "sel",
                [
                    ("child_index", "sel_index", ciw),
                    ("child_payload", "sel_payload", self.p),
                ],
            )
        )
        lines.extend(
            [
                "",
                "    assign index = {sel, sel_index};",
                "    assign payload = sel_payload;",
                "    assign valid = |child_valid;",
                "endmodule",
                "",
            ]
        )
        return lines

    def _generate_children(self, child, quarter):
        lines = []
        for i in range(4):
            lo = i * quarter
            hi = lo + quarter - 1
            lines.append(f"    {child.module_name} u_child{i} (")
            if child.clocked:
                lines.extend(["        .clk(clk),", "        .rst(rst),"])
            lines.extend(
                [
                    f"        .valid_in(valid_in[{hi}:{lo}]),",
                    f"        .payload_in(payload_in[{hi}:{lo}]),",
                    f"        .index(child_index_d[{i}]),",
                    f"        .payload(child_payload_d[{i}]),",
                    f"        .valid(child_valid_d[{i}])",
                    "    );",
                    "",
                ]
            )
        return lines

    def _generate_cut(self, unit, ciw):
        """Latch or pass through the four child triples"""
        lines = [
            f"    logic [3:0][{ciw-1}:0] child_index;",
            f"    logic [3:0][{self.p-1}:0] child_payload;",
            "    logic [3:0] child_valid;",
            "",
        ]
        signals = [
            ("child_index", "child_index_d"),
            ("child_payload", "child_payload_d"),
            ("child_valid", "child_valid_d"),
        ]
        if unit.register_cut:
            lines.append("    // Pipeline cut")
            lines.extend(self._generate_register(signals))
        else:
            for q, d in signals:
                lines.append(f"    assign {q} = {d};")
        lines.append("")
        return lines

    def _generate_register(self, signals):
        """One always_ff block latching a complete tuple, async reset to zero"""
        lines = [
            "    always_ff @(posedge clk or posedge rst) begin",
            "        if (rst) begin",
        ]
        for q, _ in signals:
            lines.append(f"            {q} <= '0;")
        lines.append("        end else begin")
        for q, d in signals:
            lines.append(f"            {q} <= {d};")
        lines.extend(["        end", "    end"])
        return lines

    def _generate_top_module(self):
        """Padding, optional I/O registers, root instance, index truncation"""
        top = self.top
        root = self.units[top.root_level]
        w, w4, p = top.width, top.padded_width, self.p

        lines = [f"// Top: {w} entries"]
        lines.extend(self._generate_ports(top.module_name, top.clocked, w, top.index_width))

        lines.extend(
            [
                f"    logic [{w-1}:0] valid_r;",
                f"    logic [{w-1}:0][{p-1}:0] payload_r;",
                "",
            ]
        )
        in_signals = [("valid_r", "valid_in"), ("payload_r", "payload_in")]
        if top.register_inputs:
            lines.append("    // Input register")
            lines.extend(self._generate_register(in_signals))
        else:
            for q, d in in_signals:
                lines.append(f"    assign {q} = {d};")
        lines.append("")

        lines.extend(
            [
                f"    logic [{w4-1}:0] valid_pad;",
                f"    logic [{w4-1}:0][{p-1}:0] payload_pad;",
                "",
            ]
        )
        if top.padding:
            lines.extend(
                [
                    f"    // Pad {top.padding} invalid entries up to {w4}",
                    f"    assign valid_pad = {{{{{top.padding}{{1'b0}}}}, valid_r}};",
                    f"    assign payload_pad = {{{{{top.padding * p}{{1'b0}}}}, payload_r}};",
                ]
            )
        else:
            lines.extend(
                [
                    "    assign valid_pad = valid_r;",
                    "    assign payload_pad = payload_r;",
                ]
            )
        lines.append("")

        lines.extend(
            [
                f"    logic [{root.index_width-1}:0] tree_index;",
                f"    logic [{p-1}:0] tree_payload;",
                "    logic tree_valid;",
                "",
                f"    {root.module_name} u_tree (",
            ]
        )
        if root.clocked:
            lines.extend(["        .clk(clk),", "        .rst(rst),"])
        lines.extend(
            [
                "        .valid_in(valid_pad),",
                "        .payload_in(payload_pad),",
                "        .index(tree_index),",
                "        .payload(tree_payload),",
                "        .valid(tree_valid)",
                "    );",
                "",
            ]
        )

        out_signals = [
            ("index", f"tree_index[{top.index_width-1}:0]"),
            ("payload", "tree_payload"),
            ("valid", "tree_valid"),
        ]
        if top.register_outputs:
            lines.append("    // Output register")
            lines.extend(self._generate_register(out_signals))
        else:
            for q, d in out_signals:
                lines.append(f"    assign {q} = {d};")
        lines.extend(["endmodule"])

        return lines


def generate_verilog(tree_gen, output_file=None):
    """
    Convenience function to generate Verilog from a PriorityEncoderGenerator

    Args:
        tree_gen: PriorityEncoderGenerator instance
        output_file: Optional output filename. If provided, writes to file.

    Returns:
        str: Complete SystemVerilog source
    """
    verilog_gen = VerilogGenerator(tree_gen)
    verilog_code = verilog_gen.generate_module()

    if output_file:
        with open(output_file, "w") as f:
            f.write(verilog_code)

    return verilog_code
