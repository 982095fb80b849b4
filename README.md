# ocmcontroller

This package provides building blocks for a controller that fetches, verifies and stores
software components. It has no runtime dependencies.

| Module | What it does |
| --- | --- |
| `ocmcontroller.untar` | Extracts tar archives and checks them for unsafe content |
| `ocmcontroller.archive` | Builds reproducible tar archives and generates snapshot names |
| `ocmcontroller.versioning` | Parses semantic versions and constraints and picks the latest valid version |
| `ocmcontroller.identity` | Hashes identities and derives registry consumer identities and credentials |
| `ocmcontroller.status` | Manages Ready, Stalled and Reconciling conditions and the events that go with them |
| `ocmcontroller.version` | Reports the release version |

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
ocmcontroller-version print-version       # prints v0.26.4
ocmcontroller-version print-rc-version    # prints v0.26.4-rc.1
```

The command writes the version to standard output with no trailing newline.

If you give no argument, it prints `missing argument` to standard error and exits with status 1. If you give an unknown argument, it prints nothing and exits with status 0.

In code, `rc_version()` returns the release-candidate string. The constants are `RELEASE_VERSION` and `RELEASE_CANDIDATE`.

## Extracting archives

`untar(stream, directory, max_size=DEFAULT_MAX_UNTAR_SIZE, skip_symlinks=False)` reads an **uncompressed** tar stream and writes its entries below `directory`.

How it treats the target directory:

- A relative `directory` is resolved against the current working directory. It cannot climb above that directory.
- If `directory` already exists, it must be a directory.

How it treats entries:

- Regular files are written with the permission bits stored in the archive.
- File times are set from the archive, but never later than the moment extraction started.
- Directories are created with mode `0o750`.
- An empty stream extracts nothing.

The following raise `UntarError`:

- Entry names that are empty, absolute, contain a backslash or contain `../`. `valid_rel_path(path)` performs this check on its own.
- Archives whose entry sizes add up to more than `max_size` bytes. The default is 100 MiB. `UNLIMITED_UNTAR_SIZE` (`-1`) turns the check off.
- Symbolic links. With `skip_symlinks=True` they are ignored instead.
- Any other entry type, and malformed archives.

```python
from ocmcontroller.untar import untar

with open("bundle.tar", "rb") as stream:
    untar(stream, "out")
```

## Building snapshots

`build_tar(artifact_path, source_dir)` writes an uncompressed tar of `source_dir` to `artifact_path`. The file has mode `0o640`.

What goes into the archive:

- Only regular files and directories are included. Symlinks and other special files are skipped.
- Entries are added in sorted, depth-first order.
- Owner ids, owner names and modification times are cleared, so the same tree always gives the same archive.
- If `source_dir` is absolute, entry names are relative to it. If `source_dir` is relative, entry names are the walked paths as given.

If `source_dir` does not exist, it raises `ValueError`.

`generate_snapshot_name(name)` returns `name` followed by a dash and seven random lower-case base32 characters, for example `my-resource-abcdefg`.

## Choosing a version

### Parsing versions

`SemVersion.parse(text)` accepts versions such as `1.2.3`, `v1.2`, `1.2.3-rc.1+build`. A leading `v` is optional. The minor and patch numbers may be left out. Versions compare by semantic-version precedence, and build metadata is ignored.

### Constraints

`Constraint.parse(text)` accepts:

- comparisons: `=`, `!=`, `>`, `<`, `>=`, `<=`
- tilde (`~`, `~>`) and caret (`^`) ranges
- wildcards: `x`, `X`, `*`
- hyphen ranges: `1.2 - 1.4.5`
- comma-separated terms that must all hold
- `||` between alternatives

`Constraint.validate(version)` takes a `SemVersion` or a string. A pre-release version only matches terms that name a pre-release themselves.

### Picking the latest version

`parse_versions(candidates)` turns strings into `Version(semver, version)` entries. It logs and drops strings that are not valid semver.

`latest_valid_version(versions, constraint, verify=None)` returns the original text of the highest version that satisfies the constraint. The constraint may be a `Constraint` or a string.

If you pass `verify`, it is called with each matching version's text, highest first. A version is skipped when `verify` raises or returns a false value.

Errors:

- `LookupError` when there are no versions at all.
- `LookupError` when nothing matches.
- `ValueError` when the constraint string cannot be parsed.

```python
from ocmcontroller.versioning import Constraint, latest_valid_version, parse_versions

versions = parse_versions(["v0.0.1", "v0.0.2", "v0.0.4", "v0.0.5"])
latest_valid_version(versions, Constraint.parse("!=v0.0.4"))  # "v0.0.5"
```

## Identities and credentials

`hash_identity(identity)` turns a mapping of string keys to string values into a stable name of the form `sha-<number>`. The order of the entries does not matter. Non-string keys or values raise `ValueError`.

`construct_repository_name(identity)` wraps `hash_identity` to name a cache repository.

`consumer_identity_for_repository(repository_url)` returns `{"type": "OCIRegistry", "hostname": <host>}`. URLs without a scheme are read as `oci://<url>`. Malformed URLs raise `ValueError`.

`credentials_from_secret(data)` decodes secret values, which may be bytes or strings, into a dict of credential properties. Empty values are left out.

## Status conditions

### Objects and conditions

`StatusObject` holds a list of `Condition` entries. Each condition has a type, status, reason, message, transition time and observed generation.

`StatusObject` provides:

- `get_condition(kind)`
- `set_condition(condition)`: keeps the previous transition time when the status is unchanged.
- `delete_condition(kind)`
- `is_ready()`
- `is_reconciling()`

### Recording events

The helpers below take a recorder: any object with a method `event(obj, metadata, severity, message)`.

- `mark_ready(recorder, obj, message, *args)`: formats `message % args`, sets Ready to true with reason `Succeeded`, removes Reconciling and records an `info` event.
- `mark_not_ready(recorder, obj, reason, message)`: removes Reconciling, sets Ready to false and records an `error` event.
- `mark_as_stalled(recorder, obj, reason, message)`: does the same as `mark_not_ready` and also sets Stalled to true.

### Finishing a run

`update_status(patch, obj, recorder, requeue, error)` finishes a reconcile run:

1. If `obj` is reconciling and `error` is set, it sets the Reconciling reason to `ProgressingWithRetry` and records a retry event.
2. If `obj` is ready, it copies `generation` to `observed_generation` and records a "Reconciliation finished" event.
3. It returns `patch(obj)`.

`requeue` may be a `timedelta`, which is rendered like `10m0s`, or a ready-made string.

## What this package does not do

This package contains only the local building blocks. It does not include:

- a Kubernetes client
- component repository access
- resource downloading
- signature verification
- a blob cache
- a running controller or reconcile loop

Callers supply those. For example, `latest_valid_version` receives the version list and a `verify` callable from the caller, and `update_status` receives a `patch` callable.