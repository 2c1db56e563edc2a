"""Tests for circuit input builders."""

from __future__ import annotations

import pytest

from lineage_zk.identity.digest import bytes32_to_array, digest
from lineage_zk.identity.exceptions import ValidationError
from lineage_zk.identity.types import ABSENT, IdentityRecord, Present
from lineage_zk.identity.witness import (
    build_name_witness,
    build_person_witness,
    effective_parent,
    load_witness,
    normalize_submitter,
    parent_from_fields,
    write_witness,
)

CHECKSUM_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
ZERO_ARRAY = [0] * 32

ALICE = IdentityRecord(full_name="Alice Smith", passphrase="pw", birth_year=1990,
                       birth_month=5, birth_day=17, gender=2)
BOB = IdentityRecord(full_name="Bob Smith", birth_year=1960, birth_month=6, birth_day=15, gender=1)

PERSON_KEYS = [
    "fullNameHash", "saltHash", "isBirthBC", "birthYear", "birthMonth", "birthDay", "gender",
    "father_fullNameHash", "father_saltHash", "father_isBirthBC", "father_birthYear",
    "father_birthMonth", "father_birthDay", "father_gender", "hasFather",
    "mother_fullNameHash", "mother_saltHash", "mother_isBirthBC", "mother_birthYear",
    "mother_birthMonth", "mother_birthDay", "mother_gender", "hasMother",
    "submitter",
]


class TestSubmitter:
    """Submitter/minter coercion to a 160-bit integer."""

    def test_int(self):
        assert normalize_submitter(1234) == 1234

    def test_decimal_string(self):
        assert normalize_submitter(" 1234 ") == 1234

    def test_checksummed_address(self):
        assert normalize_submitter(CHECKSUM_ADDRESS) == int(CHECKSUM_ADDRESS, 16)

    def test_lowercase_address(self):
        assert normalize_submitter(CHECKSUM_ADDRESS.lower()) == int(CHECKSUM_ADDRESS, 16)

    def test_bad_checksum(self):
        bad = "0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
        with pytest.raises(ValidationError, match="invalid address"):
            normalize_submitter(bad)

    def test_bad_checksum_never_reaches_the_witness(self):
        bad = "0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
        with pytest.raises(ValidationError, match="bad checksum"):
            build_name_witness("Alice Smith", "", bad)

    def test_uppercase_address_has_no_checksum(self):
        upper = "0x" + CHECKSUM_ADDRESS[2:].upper()
        assert normalize_submitter(upper) == int(CHECKSUM_ADDRESS, 16)

    def test_short_hex_address(self):
        with pytest.raises(ValidationError, match="invalid address"):
            normalize_submitter("0x1234")

    @pytest.mark.parametrize("value", [None, "", 1 << 160, -1, True, "12abc", 1.5])
    def test_rejected(self, value):
        with pytest.raises(ValidationError) as excinfo:
            normalize_submitter(value, "minter")
        assert excinfo.value.field == "minter"


class TestNameWitness:
    """Input for the salted-name circuit."""

    def test_shape(self):
        witness = build_name_witness(" Alice Smith ", "pw", CHECKSUM_ADDRESS)
        assert list(witness) == ["fullNameHash", "saltHash", "minter"]
        assert witness["fullNameHash"] == bytes32_to_array(digest("Alice Smith"))
        assert witness["saltHash"] == bytes32_to_array(digest("pw"))
        assert witness["minter"] == str(int(CHECKSUM_ADDRESS, 16))

    def test_no_passphrase_uses_zero_salt(self):
        assert build_name_witness("Alice", "", 1)["saltHash"] == ZERO_ARRAY

    def test_requires_name(self):
        with pytest.raises(ValidationError) as excinfo:
            build_name_witness("   ", "pw", 1)
        assert excinfo.value.field == "fullName"

    def test_requires_minter(self):
        with pytest.raises(ValidationError):
            build_name_witness("Alice", "pw", None)


class TestPersonWitness:
    """Input for the person-hash circuit."""

    def test_key_order(self):
        witness = build_person_witness(ALICE, Present(BOB), ABSENT, 7)
        assert list(witness) == PERSON_KEYS

    def test_subject_fields(self):
        witness = build_person_witness(ALICE, submitter=7)
        assert witness["fullNameHash"] == bytes32_to_array(digest("Alice Smith"))
        assert witness["saltHash"] == bytes32_to_array(digest("pw"))
        assert witness["isBirthBC"] == 0
        assert (witness["birthYear"], witness["birthMonth"], witness["birthDay"]) == (1990, 5, 17)
        assert witness["gender"] == 2
        assert witness["submitter"] == "7"

    def test_absent_parent_is_all_zero(self):
        witness = build_person_witness(ALICE, ABSENT, ABSENT, 7)
        for prefix, flag in (("father_", "hasFather"), ("mother_", "hasMother")):
            assert witness[flag] == 0
            assert witness[f"{prefix}fullNameHash"] == ZERO_ARRAY
            assert witness[f"{prefix}saltHash"] == ZERO_ARRAY
            for key in ("isBirthBC", "birthYear", "birthMonth", "birthDay", "gender"):
                assert witness[f"{prefix}{key}"] == 0

    def test_present_parent(self):
        witness = build_person_witness(ALICE, Present(BOB), ABSENT, 7)
        assert witness["hasFather"] == 1
        assert witness["father_fullNameHash"] == bytes32_to_array(digest("Bob Smith"))
        assert witness["father_saltHash"] == ZERO_ARRAY
        assert witness["father_birthYear"] == 1960
        assert witness["hasMother"] == 0

    def test_unknown_parent_gender_gets_role_default(self):
        father = IdentityRecord(full_name="Bob")
        mother = IdentityRecord(full_name="Carol")
        witness = build_person_witness(ALICE, Present(father), Present(mother), 7)
        assert witness["father_gender"] == 1
        assert witness["mother_gender"] == 2

    def test_partial_parent_data_is_accepted(self):
        father = IdentityRecord(full_name="Bob", birth_year=1960)
        witness = build_person_witness(ALICE, Present(father), ABSENT, 7)
        assert (witness["father_birthMonth"], witness["father_birthDay"]) == (0, 0)

    def test_parent_range_error_names_parent_field(self):
        father = IdentityRecord(full_name="Bob", birth_day=32)
        with pytest.raises(ValidationError) as excinfo:
            build_person_witness(ALICE, Present(father), ABSENT, 7)
        assert excinfo.value.field == "father_birthDay"

    def test_subject_range_error(self):
        bad = IdentityRecord(full_name="Alice", birth_month=13)
        with pytest.raises(ValidationError) as excinfo:
            build_person_witness(bad, submitter=7)
        assert excinfo.value.field == "birthMonth"

    def test_parent_must_be_tagged(self):
        with pytest.raises(ValidationError):
            build_person_witness(ALICE, BOB, ABSENT, 7)


class TestParents:
    """Parent construction from optional form fields."""

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_blank_name_is_absent(self, name):
        assert parent_from_fields(name, birth_year=1960) is ABSENT

    def test_named_parent_is_present(self):
        parent = parent_from_fields("Bob", birth_year=1960, gender=1)
        assert parent == Present(IdentityRecord(full_name="Bob", birth_year=1960, gender=1))

    def test_effective_parent(self):
        assert effective_parent(ABSENT, "father") is None
        assert effective_parent(Present(IdentityRecord(full_name="Bob")), "father").gender == 1
        assert effective_parent(Present(IdentityRecord(full_name="Eve", gender=3)), "mother").gender == 3


def test_witness_file_round_trip(tmp_path) -> None:
    witness = build_person_witness(ALICE, Present(BOB), ABSENT, CHECKSUM_ADDRESS)
    path = write_witness(witness, tmp_path / "nested" / "person_hash_input.json")
    assert load_witness(path) == witness


def test_load_witness_requires_object(tmp_path) -> None:
    path = tmp_path / "input.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_witness(path)
