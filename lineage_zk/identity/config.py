"""
Fixed parameters for the identity commitment pipeline.

Every constant in this module is part of the contract shared with the
compiled circuits and the on-chain verifier. Changing any of them produces
commitments that no longer match existing proofs or registry entries.
"""

from py_ecc.bn128 import curve_order

# ============================================================================
# FIELD
# ============================================================================

# BN254 scalar field (the field Groth16 public signals live in)
FIELD_MODULUS = curve_order
FIELD_BITS = 254

# ============================================================================
# DIGESTS AND LIMBS
# ============================================================================

DIGEST_FUNCTION = "keccak256"
DIGEST_BYTES = 32

LIMB_BITS = 128
MASK_128 = (1 << LIMB_BITS) - 1

# Reserved sentinel for "absent parent" / "no passphrase"
ZERO_DIGEST = bytes(DIGEST_BYTES)

# ============================================================================
# NORMALIZATION
# ============================================================================

# Names are trimmed and composed; passphrases are decomposed and never trimmed.
NAME_NORMALIZATION_FORM = "NFC"
PASSPHRASE_NORMALIZATION_FORM = "NFKD"

# ============================================================================
# BIRTH DATA PACKING
# ============================================================================

BIRTH_YEAR_MAX = 0xFFFF
BIRTH_MONTH_MAX = 12
BIRTH_DAY_MAX = 31
GENDER_MAX = 3

BIRTH_YEAR_SHIFT = 24
BIRTH_MONTH_SHIFT = 16
BIRTH_DAY_SHIFT = 8
GENDER_SHIFT = 1

# Gender written into the witness for a present parent whose gender is unknown
DEFAULT_FATHER_GENDER = 1
DEFAULT_MOTHER_GENDER = 2

# ============================================================================
# SUBMITTER BINDING
# ============================================================================

ADDRESS_BITS = 160
ADDRESS_LIMIT = 1 << ADDRESS_BITS

# ============================================================================
# CIRCUITS
# ============================================================================

NAME_CIRCUIT = "name_poseidon"
PERSON_CIRCUIT = "person_hash"

# Exact public-signal counts exposed by each circuit
SIGNAL_COUNTS = {
    NAME_CIRCUIT: 5,
    PERSON_CIRCUIT: 7,
}

# Trailing padding slot of the salted-name hash
SALTED_NAME_PADDING = 0

# ============================================================================
# POSEIDON
# ============================================================================

POSEIDON_FULL_ROUNDS = 8

# Partial rounds indexed by state width t - 2 (circomlib table)
POSEIDON_PARTIAL_ROUNDS = (
    56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68,
)

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert FIELD_MODULUS.bit_length() == FIELD_BITS, "Unexpected field size"
    assert 2 * LIMB_BITS == DIGEST_BYTES * 8, "Limbs must split a digest exactly"
    # A 128-bit limb always fits in the field
    assert MASK_128 < FIELD_MODULUS, "Limb does not fit in the field"
    assert BIRTH_YEAR_MAX < (1 << 16), "Birth year overlaps the month byte"
    assert (GENDER_MAX << GENDER_SHIFT) < (1 << BIRTH_DAY_SHIFT), "Gender overlaps day"
    assert ADDRESS_LIMIT < FIELD_MODULUS, "Submitter does not fit in the field"
    assert set(SIGNAL_COUNTS) == {NAME_CIRCUIT, PERSON_CIRCUIT}, "Unknown circuit"
    return True


# Auto-validate on import
validate_config()
