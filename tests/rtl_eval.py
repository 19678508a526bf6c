"""
Minimal interpreter for the SystemVerilog subset gen_verilog.py emits

Covers packed logic declarations, continuous assigns, always_comb case and
if/else chains, module and LUT6 instances. always_ff blocks are read in their
settled form (inputs held for at least the pipeline latency), so every
register behaves as q = d.
"""

import re
from math import prod

_TOKEN_RE = re.compile(
    r"\s*(?:(\d+'[bdh][0-9A-Fa-f_]+)|('0)|([A-Za-z_]\w*)|(\d+)|(<<|[{}()\[\]:?,~|<]))"
)
_DIMS_RE = re.compile(r"\[(\d+):(\d+)\]")


def _dims(text):
    return [int(hi) - int(lo) + 1 for hi, lo in _DIMS_RE.findall(text)]


def _mask(width):
    return (1 << width) - 1


def _tokenize(text):
    tokens = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise ValueError(f"Cannot tokenize '{text[pos:]}'")
        sized, zero, ident, number, op = m.groups()
        if sized:
            size, rest = sized.split("'")
            base = {"b": 2, "d": 10, "h": 16}[rest[0]]
            tokens.append(("lit", int(rest[1:].replace("_", ""), base), int(size)))
        elif zero:
            tokens.append(("lit", 0, 1))
        elif ident:
            tokens.append(("id", ident))
        elif number:
            tokens.append(("num", int(number)))
        else:
            tokens.append(("op", op))
        pos = m.end()
    return tokens


class _Expr:
    """Recursive descent over one expression; values are (int, dims)"""

    def __init__(self, text, env):
        self.tokens = _tokenize(text)
        self.pos = 0
        self.env = env

    def peek(self, value=None):
        if self.pos >= len(self.tokens):
            return None
        tok = self.tokens[self.pos]
        if value is not None:
            return tok if tok[0] == "op" and tok[1] == value else None
        return tok

    def take(self, value=None):
        tok = self.peek()
        if value is not None and (tok is None or tok[1] != value):
            raise ValueError(f"Expected '{value}', got {tok}")
        self.pos += 1
        return tok

    def parse(self):
        value = self.ternary()
        if self.pos != len(self.tokens):
            raise ValueError(f"Trailing tokens {self.tokens[self.pos:]}")
        return value

    def ternary(self):
        cond = self.compare()
        if self.peek("?"):
            self.take("?")
            a = self.ternary()
            self.take(":")
            b = self.ternary()
            return a if cond[0] else b
        return cond

    def compare(self):
        a = self.shift()
        if self.peek("<"):
            self.take("<")
            b = self.shift()
            return int(a[0] < b[0]), []
        return a

    def shift(self):
        a = self.unary()
        if self.peek("<<"):
            self.take("<<")
            b = self.unary()
            width = prod(a[1])
            return (a[0] << b[0]) & _mask(width), [width]
        return a

    def unary(self):
        if self.peek("~"):
            self.take("~")
            value, dims = self.unary()
            return ~value & _mask(prod(dims)), dims
        if self.peek("|"):
            self.take("|")
            value, _ = self.unary()
            return int(value != 0), []
        return self.primary()

    def primary(self):
        tok = self.take()
        if tok[0] == "lit":
            return tok[1], [tok[2]]
        if tok == ("op", "("):
            value = self.ternary()
            self.take(")")
            return value
        if tok == ("op", "{"):
            if self.peek() and self.peek()[0] == "num":
                count = self.take()[1]
                self.take("{")
                value, dims = self.ternary()
                self.take("}")
                self.take("}")
                width = prod(dims)
                total = 0
                for _ in range(count):
                    total = (total << width) | value
                return total, [width * count]
            parts = [self.ternary()]
            while self.peek(","):
                self.take(",")
                parts.append(self.ternary())
            self.take("}")
            total, width = 0, 0
            for value, dims in parts:
                total = (total << prod(dims)) | value
                width += prod(dims)
            return total, [width]
        if tok[0] == "id":
            value, dims = self.env[tok[1]]
            while self.peek("["):
                self.take("[")
                hi = self.take()[1]
                inner = prod(dims[1:])
                if self.peek(":"):
                    self.take(":")
                    lo = self.take()[1]
                    self.take("]")
                    count = hi - lo + 1
                    value = (value >> (lo * inner)) & _mask(count * inner)
                    dims = [count] + dims[1:]
                else:
                    self.take("]")
                    value = (value >> (hi * inner)) & _mask(inner)
                    dims = dims[1:]
            return value, dims
        raise ValueError(f"Unexpected token {tok}")


def _store(env, target, value):
    """Write into name, name[i] or name[i][j]"""
    m = re.fullmatch(r"(\w+)((?:\[\d+\])*)", target.strip())
    name = m.group(1)
    old, dims = env[name]
    offset, width = 0, prod(dims)
    rest = dims
    for index in re.findall(r"\[(\d+)\]", m.group(2)):
        width = prod(rest[1:])
        offset += int(index) * width
        rest = rest[1:]
    field = _mask(width) << offset
    env[name] = ((old & ~field) | ((value & _mask(width)) << offset), dims)


def _lut6(init, ports):
    address = sum(ports[f"I{i}"] << i for i in range(6))
    return (init >> address) & 1


class RtlModel:
    def __init__(self, text):
        self.modules = {}
        pattern = re.compile(r"^module (\w+) \(\n(.*?)^\);\n(.*?)^endmodule", re.M | re.S)
        for m in pattern.finditer(text):
            ports = []
            for line in m.group(2).splitlines():
                pm = re.match(r"\s*(input|output)\s+logic\s*((?:\[\d+:\d+\])*)\s*(\w+)", line)
                if pm:
                    ports.append((pm.group(1), pm.group(3), _dims(pm.group(2))))
            self.modules[m.group(1)] = (ports, m.group(3).splitlines())

    def run(self, name, inputs):
        ports, body = self.modules[name]
        env = {}
        for direction, port, dims in ports:
            env[port] = (inputs.get(port, 0) if direction == "input" else 0, dims)

        i = 0
        while i < len(body):
            raw = body[i]
            line = raw.strip()
            i += 1
            if not line or line.startswith("//"):
                continue
            if line.startswith("logic"):
                dm = re.match(r"logic\s*((?:\[\d+:\d+\])*)\s*(.+);", line)
                for var in dm.group(2).split(","):
                    env[var.strip()] = (0, _dims(dm.group(1)))
            elif line.startswith("assign "):
                target, expr = line[len("assign "):-1].split(" = ", 1)
                _store(env, target, _Expr(expr, env).parse()[0])
            elif line.startswith("always_"):
                block = []
                while body[i] != "    end":
                    block.append(body[i].strip())
                    i += 1
                i += 1
                if line.startswith("always_ff"):
                    self._run_ff(env, block)
                else:
                    self._run_comb(env, block)
            elif line.endswith("("):
                header = line
                connections = {}
                while body[i].strip() != ");":
                    cm = re.match(r"\.(\w+)\((.*)\),?$", body[i].strip())
                    connections[cm.group(1)] = cm.group(2)
                    i += 1
                i += 1
                self._run_instance(env, header, connections)
            else:
                raise ValueError(f"Unsupported line in {name}: {line}")

        return {port: env[port][0] for direction, port, _ in ports if direction == "output"}

    def _run_instance(self, env, header, connections):
        lut = re.match(r"LUT6 #\(\.INIT\((\S+)\)\) \w+ \($", header)
        if lut:
            init = _Expr(lut.group(1), env).parse()[0]
            values = {p: _Expr(e, env).parse()[0] for p, e in connections.items() if p != "O"}
            _store(env, connections["O"], _lut6(init, values))
            return

        module = header.split()[0]
        ports, _ = self.modules[module]
        inputs = {
            port: _Expr(connections[port], env).parse()[0]
            for direction, port, _ in ports
            if direction == "input" and port in connections
        }
        outputs = self.run(module, inputs)
        for port, value in outputs.items():
            _store(env, connections[port], value)

    def _run_ff(self, env, block):
        # Settled state: take the non-reset branch
        start = block.index("end else begin") + 1
        for line in block[start:]:
            if line == "end":
                break
            target, expr = line[:-1].split(" <= ", 1)
            _store(env, target, _Expr(expr, env).parse()[0])

    def _run_comb(self, env, block):
        branches = []  # (condition or None, [(target, expr)])
        selector = None
        for line in block:
            cm = re.match(r"case \((.+)\)$", line)
            if cm:
                selector = _Expr(cm.group(1), env).parse()[0]
                continue
            label = re.match(r"(\d+'d\d+): begin$", line)
            cond = re.match(r"(?:end else )?if \((.+)\) begin$", line)
            if label:
                branches.append((_Expr(label.group(1), env).parse()[0] == selector, []))
            elif cond:
                branches.append((bool(_Expr(cond.group(1), env).parse()[0]), []))
            elif line == "end else begin":
                branches.append((True, []))
            elif " = " in line:
                target, expr = line[:-1].split(" = ", 1)
                branches[-1][1].append((target, expr))
        for taken, assigns in branches:
            if taken:
                for target, expr in assigns:
                    _store(env, target, _Expr(expr, env).parse()[0])
                return

    def evaluate_top(self, top_name, valid, payload, prefix_width):
        inputs = {
            "valid_in": sum(int(bool(v)) << i for i, v in enumerate(valid)),
            "payload_in": sum(p << (i * prefix_width) for i, p in enumerate(payload)),
        }
        out = self.run(top_name, inputs)
        return out["index"], out["payload"], bool(out["valid"])
