# tensor_explorer

Browse the tensors and metadata inside `.safetensors` and `.gguf` model files
from your terminal.

The explorer reads every file you name and merges all of their tensors into
one tree. Tensors are grouped by the dot-separated parts of their names and
sorted in natural order, so `layers.2` comes before `layers.10`. For GGUF
files, the key/value metadata from the file header appears in its own
collapsed group, "🔧 Metadata", at the top of the tree.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

```
tensor-explorer model.safetensors
tensor-explorer model-00001-of-00002.safetensors model-00002-of-00002.safetensors
tensor-explorer llama.gguf
tensor-explorer path/to/model_dir
tensor-explorer --recursive path/to/models
```

The same command can be run as `python -m tensor_explorer.cli`. Its help and
usage messages call the program `safetensors-explorer`.

You can pass files and directories together:

- A file is used if its extension is `.safetensors` or `.gguf`. Any other file
  is skipped with a warning, and so is a path that does not exist.
- For a directory that holds `model.safetensors.index.json`, the distinct
  shard files named in its `weight_map` are loaded, if they exist.
- For any other directory, its `*.safetensors` and `*.gguf` files are loaded.
  With `-r` / `--recursive`, its subdirectories are searched too.

The command exits with status 1 if you name no paths, if no supported files
are found, or if a file or index cannot be read or parsed. In that case the
reason is printed to standard error.

## Screen and keys

| Key             | Action                                                 |
|-----------------|--------------------------------------------------------|
| Up / Down       | Move the selection                                     |
| Enter / Space   | Expand or collapse a group, or open an item's details  |
| q / Ctrl-C      | Quit                                                   |

Top-level groups start expanded; the groups inside them and the metadata group
start collapsed. Each group row shows how many tensors it holds and their
total size. Each tensor row shows the last part of the tensor's name, its
dtype, shape and size. Metadata rows show the key, the value's type and the
value, cut short after 50 bytes.

Opening a tensor shows its full name, data type, shape and size; opening a
metadata entry shows its key, type and up to 20 lines of its value. Press any
key to go back to the tree.

For quantized GGUF types, the size is an estimate based on the average bytes
per element of the format (`GGMLType.element_size_bytes()`).

## Library use

The parsing and tree-building modules can be used directly:

```python
from pathlib import Path

from tensor_explorer.gguf import GGUFFile
from tensor_explorer.tree import build_tree, flatten_tree
from tensor_explorer.explorer import load_gguf, load_safetensors
from tensor_explorer.utils import format_shape, format_size

gguf = GGUFFile.read(Path("llama.gguf").read_bytes())
for tensor in gguf.tensors:
    print(tensor.name, tensor.tensor_type, tensor.dimensions)
for key, value in gguf.metadata.items():
    print(key, value.type_name(), value)

tensors = load_safetensors(Path("model.safetensors"))
for node, depth in flatten_tree(build_tree(tensors)):
    print("  " * depth + node.name)

print(format_shape((4096, 32000)))  # "(4096, 32000)"
print(format_size(3 * 1024 * 1024))  # "3.0 MB"
```

- `tensor_explorer.gguf.GGUFFile.read(data)` parses the header, metadata and
  tensor table of GGUF bytes and raises `GGUFError` on malformed input.
- `tensor_explorer.explorer.load_safetensors(path)` and `load_gguf(path)`
  describe a file's tensors (and, for GGUF, its metadata) and raise
  `ExplorerError` when the file cannot be read or parsed.
- `tensor_explorer.tree` provides `build_tree`, `build_tree_mixed`,
  `flatten_tree`, `toggle_node_by_name` and `natural_sort_key`.
- `tensor_explorer.cli.collect_files(paths, recursive)` and
  `parse_safetensors_index(index_path)` expand paths the way the command does.

## What it does not do

The explorer only reads the description of each tensor: name, type, shape and
size. It does not load, display or compare tensor values, and it never writes
or changes model files.