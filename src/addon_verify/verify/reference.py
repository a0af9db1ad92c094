"""Package reference parsing.

ClusterBootstrap refers to packages as ``<short>.<a>.<b>.<c>.<version>``,
for example ``antrea.tanzu.vmware.com.1.2.3+vmware.4-tkg.1``: the first
four dot-separated segments name the package, everything after them is
its version.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import MalformedReferenceError

SEPARATOR = "."
NAME_SEGMENTS = 4


@dataclass(frozen=True)
class PackageRef:
    """A decomposed package reference."""

    ref_name: str
    short_name: str
    full_name: str
    version: str

    def __str__(self) -> str:
        return self.ref_name


def parse_reference(ref_name: str, strict: bool = True) -> PackageRef:
    """Split a package reference into short name, full name and version.

    Args:
        ref_name: Dotted reference from a ClusterBootstrap spec.
        strict: Reject references without a full name and a version.
            With ``strict=False`` parsing never fails: a short reference
            yields whatever name segments exist and an empty version.

    Returns:
        PackageRef for the reference.

    Raises:
        MalformedReferenceError: In strict mode, if the reference has fewer
            than five segments or an empty name segment.
    """
    segments = ref_name.split(SEPARATOR)
    if strict:
        if len(segments) <= NAME_SEGMENTS:
            raise MalformedReferenceError(
                message=(
                    f"Malformed package reference {ref_name!r}: expected "
                    f"<name>.<a>.<b>.<c>.<version>, got {len(segments)} segment(s)"
                ),
                reference=ref_name,
            )
        if not all(segments[:NAME_SEGMENTS]):
            raise MalformedReferenceError(
                message=f"Malformed package reference {ref_name!r}: empty name segment",
                reference=ref_name,
            )

    version = SEPARATOR.join(segments[NAME_SEGMENTS:])
    if strict and not version:
        raise MalformedReferenceError(
            message=f"Malformed package reference {ref_name!r}: empty version",
            reference=ref_name,
        )

    return PackageRef(
        ref_name=ref_name,
        short_name=segments[0],
        full_name=SEPARATOR.join(segments[:NAME_SEGMENTS]),
        version=version,
    )
