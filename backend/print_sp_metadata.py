"""Print the review dashboard's SAML Service Provider metadata XML to stdout.

Register the output with the identity provider so it accepts
assertions posted to ``/auth/sso/acs``.

Usage:
    python -m backend.print_sp_metadata
"""
import sys

from backend.auth.saml import generate_sp_metadata


def main() -> int:
    metadata, errors = generate_sp_metadata()
    if errors:
        print("Metadata validation errors:", ", ".join(errors), file=sys.stderr)
        return 1
    if isinstance(metadata, bytes):
        sys.stdout.buffer.write(metadata)
    else:
        print(metadata)
    return 0


if __name__ == "__main__":
    sys.exit(main())
