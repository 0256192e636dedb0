"""Bech32 address prefix re-encoding (pure logic)."""

from bech32 import bech32_decode, bech32_encode

from launchprep.errors import AddressFormatError


def address_prefix(address: str) -> str:
    """Return the human-readable prefix of a bech32 address."""
    hrp, data = bech32_decode(address)
    if hrp is None or data is None:
        raise AddressFormatError(f"invalid bech32 address: {address!r}")
    return hrp


def change_address_prefix(address: str, new_prefix: str) -> str:
    """Re-encode a bech32 address under another human-readable prefix.

    The payload is carried over untouched, so the account key is the same on
    both chains.

    Raises:
        AddressFormatError: If the address is not valid bech32 or the prefix
            cannot be used to encode it
    """
    if not new_prefix:
        raise AddressFormatError("empty address prefix")
    hrp, data = bech32_decode(address)
    if hrp is None or data is None:
        raise AddressFormatError(f"invalid bech32 address: {address!r}")
    encoded = bech32_encode(new_prefix, data)
    # bech32_encode does not validate the prefix; a round trip does
    check_hrp, check_data = bech32_decode(encoded)
    if check_hrp != new_prefix or check_data != data:
        raise AddressFormatError(
            f"cannot encode address {address!r} with prefix {new_prefix!r}"
        )
    return encoded
