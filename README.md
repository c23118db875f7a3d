# kitbag

A collection of small algorithms and data structures that need nothing beyond
the Python standard library.

| Module | What it does |
| --- | --- |
| `kitbag.expr` | Parse and evaluate arithmetic, logical and string expressions with variables and functions |
| `kitbag.kson` | A lenient JSON-like parser with key, index and path lookup and pretty printing |
| `kitbag.bgzf` | Read and write BGZF (blocked gzip) files with virtual-offset seeking |
| `kitbag.hmm` | Discrete hidden Markov models: Viterbi, forward/backward, posterior decoding, expected counts |
| `kitbag.newick` | Parse and format Newick/NHX phylogenetic trees |
| `kitbag.suffix_array` | Suffix arrays and the Burrows–Wheeler transform of strings with several zero sentinels |
| `kitbag.rmq` | A sorted map (AVL tree) with rank, neighbour and range-minimum queries |
| `kitbag.eigen` | Eigenvalues and eigenvectors of dense real symmetric matrices |
| `kitbag.optimize` | Hooke–Jeeves minimisation, Brent minimisation and Brent root finding |
| `kitbag.special` | Log-gamma, erfc, regularised incomplete gamma and beta, Kolmogorov–Smirnov distance |

## Installation

```
pip install kitbag
```

To run the test suite:

```
pip install "kitbag[test]"
pytest
```

## Library examples

### Expressions

```python
from kitbag.expr import parse

expr = parse("x * 2 + sqrt(y)")
expr.set_default_functions()      # exp, log, log10, sqrt, sin, cos, tan, pow
expr.set_real("x", 3.0)
expr.set_real("y", 16.0)
print(expr.eval_real())           # 10.0
print(expr.rpn())                 # x 2 * y sqrt(1) +
```

`evaluate()` returns an `EvalResult` with the result type (`ValueType.INT`,
`REAL` or `STR`), its integer, real and string views, and warning flags for
undefined functions and unassigned variables. A malformed expression raises
`kitbag.expr.ParseError`, whose `code` holds the error flag.

### JSON-like documents

```python
from kitbag.kson import parse, format_node

root = parse("{'a': 1, 'b': [0, 'isn\\'t', true]}")
print(root.by_path("b", 1).value)   # isn\'t  (values keep their raw text)
print(format_node(root))
```

Unbalanced brackets or a value with no key raise `kitbag.kson.KsonError`.

### BGZF files

```python
from kitbag.bgzf import open_bgzf, is_bgzf

with open_bgzf("data.gz", "w") as out:    # "w9" for level 9, "wu" for no compression
    out.write(b"line one\nline two\n")

assert is_bgzf("data.gz")

with open_bgzf("data.gz", "r") as f:
    assert f.check_eof()
    start = f.tell()
    print(f.readline())       # b'line one'
    f.seek(start)
    print(f.read(4))          # b'line'
```

`open_fd` wraps an existing file descriptor. Failures raise
`kitbag.bgzf.BgzfError`, whose `code` is one of `ERR_ZLIB`, `ERR_HEADER`,
`ERR_IO` or `ERR_MISUSE`.

### Hidden Markov models

```python
from kitbag.hmm import HmmParams, HmmData

params = HmmParams(2, 2, a0=[0.5, 0.5],
                   a=[[0.9, 0.1], [0.1, 0.9]],
                   e=[[0.8, 0.2], [0.2, 0.8]])
data = HmmData([0, 0, 1, 1])
data.viterbi(params)
print(data.viterbi_path)
data.forward(params)
params.pre_backward()
data.backward(params)
print(data.log_likelihood())
print(data.posterior_decode(params))
counts = data.expect(params)
```

`simulate(params, length, rng)` draws a symbol sequence from a model.

### Newick trees

```python
from kitbag.newick import parse, format_tree

nodes = parse("((a:1,b:2)c:0.5,d)")
print(format_tree(nodes))     # ((a:1,b:2)c:0.5,d)
```

### Suffix arrays

```python
from kitbag.suffix_array import suffix_array, bwt

sa = suffix_array(b"banana\0", 256)
print(bwt(b"banana\0"))
```

The text must end with a zero byte; every zero byte is a sentinel.

### Range-minimum queries

```python
from kitbag.rmq import RmqTree

tree = RmqTree([(1, 5), (2, 3), (3, 8), (4, 1)])
print(tree.rmq(1, 3))         # (2, 3)
print(tree.rank(3))           # 3
print(tree.interval(2.5))     # (2, 3)
print(list(tree))             # [1, 2, 3, 4]
```

### Numerics

```python
from kitbag.special import lgamma, erfc, gammaq, betai
from kitbag.optimize import brent_root, brent_minimize, hooke_jeeves
from kitbag.eigen import eigen_symmetric

print(erfc(1.0))
print(brent_root(lambda x: x * x - 2.0, 0.0, 2.0, 1e-10))
value, argmin = brent_minimize(lambda x: (x - 1.0) ** 2, 0.0, 0.5, 1e-8)
values, vectors = eigen_symmetric([[2.0, 1.0], [1.0, 2.0]])
```

`brent_root` raises `RootFindingError` when the interval does not bracket a
root; `eigen_symmetric` raises `ExcessIterationError` when the iteration limit
is reached.

## Command-line tools

Evaluate an expression, optionally assigning real values to variables with
`name=value`:

```
kitbag-expr "x * 2 + 1" x=3
```

Print the expression in reverse Polish notation instead of evaluating it:

```
kitbag-expr -p "x * 2 + 1"
```

The `-i` option is accepted and has no effect.

Pretty-print a JSON-like file and optionally follow a path of keys and indices
into it; with no arguments a built-in sample is parsed and printed:

```
kitbag-kson data.json b 1
```

## What it does not do

`kitbag.bgzf` works on local files and open file descriptors only; it does not
fetch data over HTTP or FTP. BGZF files can be read or written but not
appended to, and seeking is only available when reading.