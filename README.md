# pkdcl

Compression and decompression in the PKWare Data Compression Library (DCL)
format, the "implode"/"explode" scheme used by many old archives and game
data files. Pure Python, no dependencies.

Supported:

- binary and ASCII literal coding (`CompressionMode.BINARY`, `CompressionMode.ASCII`),
- dictionary sizes of 1 KB, 2 KB and 4 KB (`DictionarySize.SIZE_1K`, `SIZE_2K`, `SIZE_4K`),
- repetitions of up to 516 bytes (`pkdcl.types.MAX_REP_LENGTH`),
- in-memory helpers and streaming reader/writer objects.

## Installing

```
pip install pkdcl
```

## Compressing and decompressing bytes

```python
from pkdcl.types import CompressionMode, DictionarySize
from pkdcl.implode import implode_bytes
from pkdcl.explode import explode_bytes

data = b"Hello, World! This is a test."
packed = implode_bytes(data, CompressionMode.ASCII, DictionarySize.SIZE_2K)
assert explode_bytes(packed) == data
```

`implode_bytes` defaults to binary mode with a 2 KB dictionary.

The first two bytes of a compressed stream hold the literal coding mode
(0 for binary, 1 for ASCII) and the dictionary size in bits (4, 5 or 6);
`DictionarySize.bits()` gives the latter.

## Streaming

`ImplodeWriter` wraps any binary file-like object. Input is compressed in
blocks of 4 KB as it is written. Use it as a context manager, or call
`finish()` yourself, so that the end-of-stream marker is written; `finish()`
returns the wrapped object. `flush()` compresses what has been queued and
writes out every complete compressed byte.

```python
from pkdcl.implode import ImplodeWriter
from pkdcl.types import CompressionMode, DictionarySize

with open("data.imploded", "wb") as out:
    with ImplodeWriter(out, CompressionMode.BINARY, DictionarySize.SIZE_4K) as writer:
        for chunk in chunks:
            writer.write(chunk)
```

`ExplodeReader` wraps a binary file-like object holding compressed data.
The header is read on the first call to `read()`. Read from it like a file
(`read(-1)` returns everything that is left, an empty result means the end),
or iterate over it to receive decompressed chunks:

```python
from pkdcl.explode import ExplodeReader

with open("data.imploded", "rb") as src:
    for chunk in ExplodeReader(src):
        handle(chunk)
```

## Lower-level pieces

- `pkdcl.tables` holds the format's static code tables.
- `pkdcl.explode_state.ExplodeState` is the decoder's bit buffer and decode
  tables, with `decode_lit()` and `decode_dist()`.
- `pkdcl.implode_state.ImplodeState` is the compressor's code tables, buffers
  and byte-pair hash index (`sort_buffer()`, `find_hash_positions()`);
  `stats()` returns a `CompressionStats`.
- `pkdcl.pattern` finds earlier repetitions in the work buffer
  (`find_repetition()` returns a `MatchResult`).

## Errors

Problems raise a subclass of `pkdcl.types.PkLibError`:

- `InvalidDataError` for input of four bytes or fewer,
- `InvalidCompressionModeError` and `InvalidDictionaryBitsError` for a bad header,
- `DecompressionError` for a corrupt or truncated bit stream,
- `InvalidLengthError` and `InvalidDistanceError` when a repetition cannot be encoded.

Because a stream must be longer than four bytes, the stream that
`implode_bytes(b"")` produces (a header and an end marker, four bytes) is
rejected by `explode_bytes` with `InvalidDataError`.

## What this package does not do

There is no command-line program; compression and decompression are only
available from Python. Compressed output is not guaranteed to match other
DCL compressors byte for byte, though it is valid DCL data.

## Running the tests

```
pip install -e ".[test]"
pytest
```