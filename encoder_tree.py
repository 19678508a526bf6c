#!/usr/bin/env python3
"""
Quaternary Arg-Min Tree Generator
Builds a balanced 4-ary reduction tree that returns the index and payload of
the smallest valid entry, then renders it as SystemVerilog
Supports: pipeline cuts every N levels, input/output registers
Supports: CASE, IFELSE and EXTLUT (Xilinx LUT6) level combiners
"""

import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from encoder_spec import EncoderSpec, EncoderSpecError, MuxStyle, parse_args
from gen_graphviz import generate_graphviz
from gen_verilog import generate_verilog
from mux_strategy import get_mux_strategy
from visualize_tree import visualize_tree_rich


# =================================================================
# Bit width planning
# =================================================================


def levels_needed(width):
    """Tree depth L such that 4^L is the smallest power of 4 >= width

    Counts bit doublings from a unit of size 2 until the size covers the
    width, then rounds the doubling count up to whole base-4 digits.
    """
    size = 2
    doublings = 1
    while size < width:
        size *= 2
        doublings += 1
    return (doublings + 1) // 2


def input_width(level):
    """Number of entries covered by a unit of the given level"""
    return 4**level


def index_width(level):
    """Index bits produced by a unit of the given level"""
    return 2 * level


def padded_width(width):
    return input_width(levels_needed(width))


def output_index_width(width):
    """ceil(log2(width)): bits needed to address the un-padded entries"""
    return (width - 1).bit_length()


# =================================================================
# Pipeline policy
# =================================================================


def has_register_cut(level, max_comb_depth):
    """True if the children of this level are latched before its combiner"""
    if max_comb_depth is None or level < 2:
        return False
    return (level - 1) % max_comb_depth == 0


def internal_cuts(levels, max_comb_depth):
    return sum(1 for k in range(2, levels + 1) if has_register_cut(k, max_comb_depth))


# =================================================================
# Structural model
# =================================================================


@dataclass(frozen=True)
class StructuralUnit:
    """One module definition, shared by every instantiation site of its level"""

    level: int
    payload_width: int
    module_name: str
    register_cut: bool = False
    clocked: bool = False

    @property
    def input_width(self):
        return input_width(self.level)

    @property
    def index_width(self):
        return index_width(self.level)

    @property
    def child_level(self) -> Optional[int]:
        return self.level - 1 if self.level > 1 else None

    @property
    def is_leaf(self):
        return self.level == 1


@dataclass(frozen=True)
class TopAssembly:
    module_name: str
    width: int
    padded_width: int
    levels: int
    index_width: int
    payload_width: int
    register_inputs: bool
    register_outputs: bool
    root_level: int
    clocked: bool

    @property
    def padding(self):
        return self.padded_width - self.width


class PriorityEncoderGenerator:
    """Derive the level arena and top assembly for one EncoderSpec"""

    def __init__(self, spec: EncoderSpec):
        self.spec = spec
        self.width = spec.width
        self.prefix_width = spec.prefix_width
        self.max_comb_depth = spec.max_comb_depth
        self.mux_style = spec.mux_style
        self.mux = get_mux_strategy(spec.mux_style)
        self.module_name = f"argmin_{spec.suffix}"

        self.levels = levels_needed(self.width)
        self.padded_width = input_width(self.levels)
        self.units: Dict[int, StructuralUnit] = {}
        self.top = None

        self.build_tree()

    def build_tree(self):
        """Populate the arena bottom-up, one definition per level"""
        clocked = False
        for level in range(1, self.levels + 1):
            cut = has_register_cut(level, self.max_comb_depth)
            clocked = clocked or cut
            self.units[level] = StructuralUnit(
                level=level,
                payload_width=self.prefix_width,
                module_name=f"{self.module_name}_l{level}",
                register_cut=cut,
                clocked=clocked,
            )

        self.top = TopAssembly(
            module_name=self.module_name,
            width=self.width,
            padded_width=self.padded_width,
            levels=self.levels,
            index_width=output_index_width(self.width),
            payload_width=self.prefix_width,
            register_inputs=self.spec.register_inputs,
            register_outputs=self.spec.register_outputs,
            root_level=self.levels,
            clocked=(
                clocked or self.spec.register_inputs or self.spec.register_outputs
            ),
        )

    @property
    def num_cuts(self):
        return internal_cuts(self.levels, self.max_comb_depth)

    @property
    def latency(self):
        """Clock cycles from input to output"""
        return int(self.spec.register_inputs) + self.num_cuts + int(self.spec.register_outputs)

    def cut_levels(self) -> List[int]:
        return [k for k, unit in sorted(self.units.items()) if unit.register_cut]

    def instance_count(self, level):
        """How many times the definition of a level is instantiated in the tree"""
        return 4 ** (self.levels - level)

    # -----------------------------------------------------------------
    # Behavioral evaluation of the structural model
    # -----------------------------------------------------------------

    @staticmethod
    def _compare4(keys):
        """Leaf compare-and-select: returns (2-bit selector, winning key)"""
        b_lo = keys[1] < keys[0]
        m_lo = keys[1] if b_lo else keys[0]
        b_hi = keys[3] < keys[2]
        m_hi = keys[3] if b_hi else keys[2]
        hi_won = m_hi < m_lo
        sel = (int(hi_won) << 1) | int(b_hi if hi_won else b_lo)
        return sel, (m_hi if hi_won else m_lo)

    def _key(self, valid, payload):
        return (int(not valid) << self.prefix_width) | payload

    def _evaluate_unit(self, level, valid, payload):
        unit = self.units[level]
        mask = (1 << self.prefix_width) - 1

        if unit.is_leaf:
            keys = [self._key(valid[i], payload[i]) for i in range(4)]
            sel, winner = self._compare4(keys)
            return sel, winner & mask, any(valid)

        quarter = input_width(unit.child_level)
        children = [
            self._evaluate_unit(
                unit.child_level,
                valid[i * quarter:(i + 1) * quarter],
                payload[i * quarter:(i + 1) * quarter],
            )
            for i in range(4)
        ]
        keys = [self._key(c_valid, c_payload) for _, c_payload, c_valid in children]
        sel, _ = self._compare4(keys)
        child_index, child_payload, _ = self.mux.select(sel, children)
        index = (sel << index_width(unit.child_level)) | child_index
        return index, child_payload, any(c[2] for c in children)

    def evaluate(self, valid: Sequence[int], payload: Sequence[int]) -> Tuple[int, int, bool]:
        """
        Compute (index, payload, valid) the generated structure produces for
        one set of W entries, after padding and index truncation
        """
        if len(valid) != self.width or len(payload) != self.width:
            raise ValueError(
                f"Expected {self.width} entries, got {len(valid)} valid / {len(payload)} payload"
            )
        for i, p in enumerate(payload):
            if not 0 <= p < (1 << self.prefix_width):
                raise ValueError(
                    f"Payload {p} of entry {i} does not fit in {self.prefix_width} bits"
                )
        pad = self.padded_width - self.width
        valid_pad = [int(bool(v)) for v in valid] + [0] * pad
        payload_pad = list(payload) + [0] * pad

        index, out_payload, out_valid = self._evaluate_unit(self.levels, valid_pad, payload_pad)
        index &= (1 << self.top.index_width) - 1
        return index, out_payload, out_valid

    # -----------------------------------------------------------------
    # Reporting
    # -----------------------------------------------------------------

    def print_summary(self):
        """Print generation summary with the level table"""
        print(f"\nArg-Min Tree Configuration:")
        print(f"  Module: {self.module_name}")
        print(f"  Entries: {self.width} (padded to {self.padded_width})")
        print(f"  Payload Width: {self.prefix_width} bits")
        print(f"  Output Index Width: {self.top.index_width} bits")
        print(f"  Tree Levels: {self.levels}")
        print(
            f"  Max Combinational Depth: "
            f"{'unbounded' if self.max_comb_depth is None else self.max_comb_depth}"
        )
        print(f"  Mux Style: {self.mux_style.value}")
        print(f"  Pipeline Latency: {self.latency} cycle(s)")
        print()
        print(visualize_tree_rich(self))


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    try:
        spec, args = parse_args(argv)
    except EncoderSpecError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    gen = PriorityEncoderGenerator(spec)

    if spec.mux_style == MuxStyle.EXTLUT:
        print(
            "WARNING: EXTLUT instantiates Xilinx LUT6 primitives; "
            "the output only synthesizes on targets that provide them"
        )

    if args.summary:
        gen.print_summary()

    output = args.output or f"{gen.module_name}.sv"
    generate_verilog(gen, output)

    if args.graphviz:
        generate_graphviz(gen, args.graphviz)
        print(f"GraphViz file generated: {args.graphviz}")

    print(f"\nGenerated {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
