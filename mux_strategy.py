#!/usr/bin/env python3
"""
4-to-1 select strategies for the level combiner

Each strategy carries a behavioral model (select) used by the structural
evaluator and a renderer that emits the SystemVerilog for one combiner.
"""

from typing import List, Sequence, Tuple

from encoder_spec import MuxStyle


class MuxStrategy:
    """Select one of four buses with a 2-bit selector"""

    style = None

    def select(self, sel: int, choices: Sequence):
        raise NotImplementedError

    def render(self, sel: str, buses: List[Tuple[str, str, int]]) -> List[str]:
        """
        Emit the select logic for one combiner

        Args:
            sel: name of the 2-bit selector signal
            buses: (source array, destination, bit width) per selected bus.
                The source is a packed [3:0][width-1:0] array.
        """
        raise NotImplementedError


class CaseMux(MuxStrategy):
    style = MuxStyle.CASE

    def select(self, sel, choices):
        return choices[sel & 3]

    def render(self, sel, buses):
        lines = ["    always_comb begin", f"        case ({sel})"]
        for i in range(4):
            lines.append(f"            2'd{i}: begin")
            for src, dst, _ in buses:
                lines.append(f"                {dst} = {src}[{i}];")
            lines.append("            end")
        lines.extend(["        endcase", "    end"])
        return lines


class IfElseMux(MuxStrategy):
    """Priority chain over the one-hot decode of the selector; child 3 is the default"""

    style = MuxStyle.IFELSE

    @staticmethod
    def decode(sel):
        return [(sel & 3) == i for i in range(4)]

    def select(self, sel, choices):
        hit = self.decode(sel)
        if hit[0]:
            return choices[0]
        elif hit[1]:
            return choices[1]
        elif hit[2]:
            return choices[2]
        return choices[3]

    def render(self, sel, buses):
        hit = f"{sel}_hit"
        lines = [
            f"    logic [3:0] {hit};",
            f"    assign {hit} = 4'b0001 << {sel};",
            "",
            "    always_comb begin",
        ]
        for i in range(3):
            keyword = "if" if i == 0 else "end else if"
            lines.append(f"        {keyword} ({hit}[{i}]) begin")
            for src, dst, _ in buses:
                lines.append(f"            {dst} = {src}[{i}];")
        lines.append("        end else begin")
        for src, dst, _ in buses:
            lines.append(f"            {dst} = {src}[3];")
        lines.extend(["        end", "    end"])
        return lines


class ExtendedLutMux(CaseMux):
    """
    One Xilinx LUT6 per output bit: I0..I3 carry the candidates, {I5, I4} the
    selector. Same truth table as the case statement.
    """

    style = MuxStyle.EXTLUT
    primitive = "LUT6"

    def lut_init(self):
        """Derive the 64-bit INIT constant from the case truth table"""
        init = 0
        for address in range(64):
            data = [(address >> i) & 1 for i in range(4)]
            sel = (address >> 4) & 3
            if CaseMux.select(self, sel, data):
                init |= 1 << address
        return init

    def render(self, sel, buses):
        init = self.lut_init()
        lines = []
        for src, dst, width in buses:
            base = dst.replace("[", "_").replace("]", "")
            for bit in range(width):
                lines.extend(
                    [
                        f"    {self.primitive} #(.INIT(64'h{init:016X})) lut_{base}_b{bit} (",
                        f"        .O({dst}[{bit}]),",
                        f"        .I0({src}[0][{bit}]),",
                        f"        .I1({src}[1][{bit}]),",
                        f"        .I2({src}[2][{bit}]),",
                        f"        .I3({src}[3][{bit}]),",
                        f"        .I4({sel}[0]),",
                        f"        .I5({sel}[1])",
                        "    );",
                    ]
                )
        return lines


_STRATEGIES = {
    MuxStyle.CASE: CaseMux,
    MuxStyle.IFELSE: IfElseMux,
    MuxStyle.EXTLUT: ExtendedLutMux,
}


def get_mux_strategy(style: MuxStyle) -> MuxStrategy:
    return _STRATEGIES[style]()
