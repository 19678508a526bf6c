#!/usr/bin/env python3
"""Generate test data for the arg-min tree (argmin_<suffix>.sv)"""

import random
import os
import argparse


def compute_argmin(valid, payload):
    """
    Expected outputs of the arg-min tree

    Args:
        valid: List of validity bits (entry 0 first)
        payload: List of payload values (entry 0 first)

    Returns:
        Tuple of (index, payload, valid). Ties go to the lowest index.
        When nothing is valid the index and payload are reported as 0.
    """
    best = None
    for i, (v, p) in enumerate(zip(valid, payload)):
        if v and (best is None or p < payload[best]):
            best = i

    if best is None:
        return 0, 0, 0
    return best, payload[best], 1


def compute_latency(levels, cmd, register_inputs, register_outputs):
    cuts = 0
    if cmd is not None:
        cuts = sum(1 for k in range(2, levels + 1) if (k - 1) % cmd == 0)
    return int(register_inputs) + cuts + int(register_outputs)


def tree_levels(width):
    levels = 1
    while 4**levels < width:
        levels += 1
    return levels


def generate_test_data(width=8, prefix_width=4, num_tests=64, exhaustive=False,
                       output_dir="./data"):
    """
    Generate random or exhaustive test vectors for the arg-min tree

    Args:
        width: Number of entries
        prefix_width: Payload width in bits
        num_tests: Number of random test cases (ignored if exhaustive=True)
        exhaustive: If True, enumerate every valid/payload combination
        output_dir: Output directory for test data files
    """

    os.makedirs(output_dir, exist_ok=True)

    valid_vals, payload_vals = [], []
    index_vals, out_payload_vals, out_valid_vals = [], [], []

    if exhaustive and width * (prefix_width + 1) > 16:
        print(f"Warning: Exhaustive testing for width={width}, prefix={prefix_width} "
              f"would generate {2**(width * (prefix_width + 1))} tests. "
              f"Limiting to {num_tests} random tests.")
        exhaustive = False

    if exhaustive:
        total_combos = 2 ** (width * (prefix_width + 1))
        print(f"Generating exhaustive test cases: {total_combos} tests")
        inputs = []
        for combo in range(total_combos):
            valid = [(combo >> i) & 1 for i in range(width)]
            rest = combo >> width
            mask = (1 << prefix_width) - 1
            payload = [(rest >> (i * prefix_width)) & mask for i in range(width)]
            inputs.append((valid, payload))
    else:
        inputs = [
            (
                [random.randint(0, 1) for _ in range(width)],
                [random.randint(0, (1 << prefix_width) - 1) for _ in range(width)],
            )
            for _ in range(num_tests)
        ]

    for valid, payload in inputs:
        index, out_payload, out_valid = compute_argmin(valid, payload)

        # Pack entry 0 into the least significant bits
        valid_vals.append(sum(v << i for i, v in enumerate(valid)))
        payload_vals.append(sum(p << (i * prefix_width) for i, p in enumerate(payload)))
        index_vals.append(index)
        out_payload_vals.append(out_payload)
        out_valid_vals.append(out_valid)

    # Write to hex files
    def write_hex(filename, values, width_bits):
        path = os.path.join(output_dir, filename)
        hex_width = (width_bits + 3) // 4  # Number of hex digits needed
        with open(path, "w") as f:
            for val in values:
                f.write(f"{val:0{hex_width}x}\n")

    index_bits = max(1, (width - 1).bit_length())
    write_hex("valid_in.hex", valid_vals, width)
    write_hex("payload_in.hex", payload_vals, width * prefix_width)
    write_hex("index.hex", index_vals, index_bits)
    write_hex("payload.hex", out_payload_vals, prefix_width)
    write_hex("valid.hex", out_valid_vals, 1)

    print(f"\nGenerated {len(valid_vals)} test vectors for arg-min tree")
    print(f"Entries: {width}, Payload: {prefix_width} bits")
    print(f"Files written to {output_dir}/\n")

    for i in range(min(5, len(valid_vals))):
        print(f"Test {i}: valid={valid_vals[i]:x} payload={payload_vals[i]:x} -> "
              f"index={index_vals[i]} payload={out_payload_vals[i]:x} "
              f"valid={out_valid_vals[i]}")

    return len(valid_vals)


def export_defines(args):
    """Generate tb/top.h with test configuration"""
    os.makedirs(args.header, exist_ok=True)
    header_path = os.path.join(args.header, "top.h")

    latency = compute_latency(tree_levels(args.width), args.cmd, args.ri, args.ro)

    with open(header_path, "w") as f:
        f.write(f"`define TESTS {args.num_tests}\n")
        f.write(f"`define W {args.width}\n")
        f.write(f"`define P {args.prefix_width}\n")
        f.write(f"`define IW {(args.width - 1).bit_length()}\n")
        f.write(f"`define LATENCY {latency}\n")

    print(f"Header file written to: {header_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate arg-min tree test data")
    parser.add_argument(
        "-w", "--width",
        type=int,
        default=8,
        help="Number of entries (default: 8)",
    )
    parser.add_argument(
        "-p", "--prefix-width",
        type=int,
        default=4,
        help="Payload width in bits (default: 4)",
    )
    parser.add_argument(
        "-n", "--num-tests",
        type=int,
        default=64,
        help="Number of test cases (default: 64)",
    )
    parser.add_argument(
        "-e", "--exhaustive",
        action="store_true",
        help="Generate exhaustive test cases (only practical for tiny trees)",
    )
    parser.add_argument(
        "--cmd",
        type=int,
        default=None,
        help="Max combinational depth the tree was generated with (default: unbounded)",
    )
    parser.add_argument("--ri", action="store_true", help="Tree has registered inputs")
    parser.add_argument("--ro", action="store_true", help="Tree has registered outputs")
    parser.add_argument(
        "-o", "--output",
        type=str,
        default="data/",
        help="Output directory (default: data/)",
    )
    parser.add_argument(
        "-r", "--header",
        type=str,
        default="tb/",
        help="Output directory for top.h header file (default: tb/)",
    )

    args = parser.parse_args()

    args.num_tests = generate_test_data(
        width=args.width,
        prefix_width=args.prefix_width,
        num_tests=args.num_tests,
        exhaustive=args.exhaustive,
        output_dir=args.output,
    )

    export_defines(args)
