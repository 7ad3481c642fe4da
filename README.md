# fvemeta

`fvemeta` parses the on-disk FVE metadata structures of BitLocker-encrypted
volumes from plain bytes: the volume boot record, the information block, the
dataset header and the datums it holds. It can search datums, locate volume
master key (VMK) entries, and build key datums from raw key files. It uses
only the standard library.

## Modules

- `fvemeta.structures` — frozen dataclasses `VolumeHeader`, `Information`,
  `Dataset`, `EowInformation` and `Region`, each parsed with `.parse()`, plus
  the `Version` and `State` enums. Helpers:
  - `VolumeHeader.version()` gives `Version.SEVEN` or `Version.VISTA` for an
    FVE signature (or `None`), and `VolumeHeader.volume_size()` the size in
    bytes from the sector counts.
  - `Information.metadata_size()` and `Dataset.is_valid()`.
  - `state_name()`, `metafiles_size()`, `is_overwritten()` and
    `check_state()` (which logs warnings and returns `False` for a volume in
    the middle of a conversion).
  - `vista_vbr_fve_to_ntfs()` and `vista_vbr_ntfs_to_fve()` rewrite a Vista
    boot sector between its FVE and NTFS forms.
- `fvemeta.datums` — `DatumHeader`, the `ValueType`, `EntryType` and
  `Cipher` enums, `cipher_name()`, `value_type_name()`, `entry_type_name()`,
  `header_size()`, `has_nested()`, `get_payload()` and `value_type_is()`.
  Malformed datums raise `DatumError` (a `ValueError`).
- `fvemeta.datum_search` — `find_next_datum()`, `find_nested()`,
  `nested_datum_offset()` and `iter_datums()` work on a buffer that begins
  with the dataset header and return offsets into it. `ANY` (0xFFFF) or `None`
  matches every type.
- `fvemeta.vmk` — `find_vmk_by_guid()`, `find_vmk_by_range()`,
  `has_clear_key()`, and `vmk_from_file()` which turns a 32-byte file into a
  KEY datum.
- `fvemeta.fvek` — `fvek_from_file()` turns a 66-byte file (2-byte method,
  64 bytes of keys) into a KEY datum.
- `fvemeta.guid` — `format_guid()`, `guids_match()` and the
  `INFORMATION_OFFSET_GUID` / `EOW_INFORMATION_OFFSET_GUID` constants.
- `fvemeta.clock` — `ntfs_to_utc()` converts an NTFS timestamp to Unix
  seconds.
- `fvemeta.encoding` — `utf16_to_str()` and `ascii_to_utf16()`.
- `fvemeta.logs` — `LogLevel`, `configure()`, `log()`, `close()` and
  `chomp()`.

## Examples

Read the boot record of an image:

```python
from fvemeta.guid import format_guid
from fvemeta.structures import VolumeHeader

with open("bitlocker.img", "rb") as image:
    header = VolumeHeader.parse(image.read(VolumeHeader.SIZE))

print(header.signature, header.version(), header.volume_size())
print(format_guid(header.guid))
```

Given the bytes of one metadata block (an information block followed by its
dataset), look for a clear key and list the datums:

```python
from fvemeta.datum_search import iter_datums
from fvemeta.datums import value_type_name
from fvemeta.structures import Information
from fvemeta.vmk import has_clear_key

info = Information.parse(block)
dataset = block[Information.DATASET_OFFSET:]

print(info.metadata_size(), info.dataset.is_valid())
print("clear key present:", has_clear_key(dataset))
for offset, datum in iter_datums(dataset):
    print(hex(offset), value_type_name(datum.value_type), datum.datum_size)
```

Small helpers work on plain values:

```python
from fvemeta.clock import ntfs_to_utc
from fvemeta.guid import format_guid

print(format_guid(bytes(range(16))))
print(ntfs_to_utc(116444736000000000))  # the Unix epoch, 0
```

## Logging

```python
from fvemeta.logs import LogLevel, close, configure, log

configure(LogLevel.DEBUG, None)  # None logs to stdout
log(LogLevel.INFO, "reading volume\n")
close()
```

Messages above the configured level are discarded; each one is prefixed with
a timestamp and the level name.

## What it does not do

`fvemeta` works on buffers you supply. It does not open a volume and locate
or validate its metadata copies by itself, does not decrypt VMK or FVEK
datums, does not decrypt or encrypt sectors, and has no command-line tool or
pretty-printer for whole structures.