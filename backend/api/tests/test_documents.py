import random
import re

import pytest

from backend.utils import (
    CNPJUtils,
    CPFUtils,
    DocumentUtils,
    format_cnpj,
    format_cpf,
    generate_id,
    normalize,
    validate_cnpj,
    validate_cpf,
)

CPF_MASK_LEN = len("000.000.000-00")
CNPJ_MASK_LEN = len("00.000.000/0000-00")


def test_normalize_keeps_only_ascii_digits():
    assert normalize("111.444.777-35") == "11144477735"
    assert normalize("11.222.333/0001-81") == "11222333000181"
    assert normalize(" a1b2 c3 ") == "123"
    assert normalize("abc") == ""
    assert normalize("") == ""
    assert normalize(None) == ""
    # dígitos não-ASCII não contam
    assert normalize("١٢٣4") == "4"


@pytest.mark.parametrize("cpf", ["11144477735", "111.444.777-35", "097.024.144-58", " 111 444 777 35 "])
def test_validate_cpf_accepts_valid(cpf):
    assert validate_cpf(cpf) is True


@pytest.mark.parametrize("cpf", ["", "123", "invalid", "12345678900", "123456789012", "11144477736", "11144477745"])
def test_validate_cpf_rejects_invalid(cpf):
    assert validate_cpf(cpf) is False


@pytest.mark.parametrize("digit", "0123456789")
def test_repeated_digits_are_never_valid(digit):
    assert validate_cpf(digit * 11) is False
    assert validate_cnpj(digit * 14) is False


@pytest.mark.parametrize("cnpj", ["11222333000181", "11.222.333/0001-81"])
def test_validate_cnpj_accepts_valid(cnpj):
    assert validate_cnpj(cnpj) is True


@pytest.mark.parametrize("cnpj", ["", "123", "invalid", "11222333000180", "11222333000191", "123456789012345"])
def test_validate_cnpj_rejects_invalid(cnpj):
    assert validate_cnpj(cnpj) is False


def test_validators_do_not_cross_lengths():
    assert validate_cpf("11222333000181") is False
    assert validate_cnpj("11144477735") is False


def test_check_digits():
    assert CPFUtils.check_digits("111444777") == (3, 5)
    assert CNPJUtils.check_digits("112223330001") == (8, 1)
    with pytest.raises(ValueError):
        CPFUtils.check_digits("123")
    with pytest.raises(ValueError):
        CNPJUtils.check_digits("123")


def test_check_digit_is_zero_when_remainder_below_two():
    # soma 11 -> resto 0; soma 12 -> resto 1
    assert CPFUtils.check_digits("000000031") == (0, 7)
    assert CPFUtils.check_digits("000000006")[0] == 0
    assert validate_cpf("00000003107") is True
    assert validate_cpf("000.000.031-07") is True
    assert CPFUtils.check_digits("000000001")[0] == 9


def test_format_cpf_full_and_idempotent():
    assert format_cpf("12345678901") == "123.456.789-01"
    assert format_cpf("123.456.789-01") == "123.456.789-01"
    assert format_cpf("11144477735") == "111.444.777-35"


def test_format_cnpj_full_and_idempotent():
    assert format_cnpj("11222333000181") == "11.222.333/0001-81"
    assert format_cnpj("11.222.333/0001-81") == "11.222.333/0001-81"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        ("1", "1"),
        ("123", "123"),
        ("1234", "123.4"),
        ("123456", "123.456"),
        ("1234567", "123.456.7"),
        ("123456789", "123.456.789"),
        ("1234567890", "123.456.789-0"),
        ("123456789012", "123.456.789-01"),
    ],
)
def test_format_cpf_progressive(raw, expected):
    assert format_cpf(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        ("11", "11"),
        ("112", "11.2"),
        ("112223", "11.222.3"),
        ("11222333", "11.222.333"),
        ("112223330", "11.222.333/0"),
        ("112223330001", "11.222.333/0001"),
        ("1122233300018", "11.222.333/0001-8"),
        ("112223330001819", "11.222.333/0001-81"),
    ],
)
def test_format_cnpj_progressive(raw, expected):
    assert format_cnpj(raw) == expected


def test_partial_formatting_never_exceeds_mask():
    rng = random.Random(1234)
    for _ in range(200):
        raw = "".join(rng.choice("0123456789.-/ x") for _ in range(rng.randint(0, 25)))
        assert len(format_cpf(raw)) <= CPF_MASK_LEN
        assert len(format_cnpj(raw)) <= CNPJ_MASK_LEN
        assert not format_cpf(raw).endswith((".", "-"))
        assert not format_cnpj(raw).endswith((".", "-", "/"))


def test_formatting_preserves_cpf_validity():
    rng = random.Random(42)
    samples = ["".join(rng.choice("0123456789") for _ in range(11)) for _ in range(200)]
    for _ in range(50):
        base = "".join(rng.choice("0123456789") for _ in range(9))
        samples.append(base + "".join(map(str, CPFUtils.check_digits(base))))
    for x in samples:
        assert validate_cpf(normalize(format_cpf(x))) == validate_cpf(x)


def test_document_utils_dispatch():
    assert DocumentUtils.detect_kind("111.444.777-35") == "cpf"
    assert DocumentUtils.detect_kind("11.222.333/0001-81") == "cnpj"
    assert DocumentUtils.detect_kind("123") is None
    assert DocumentUtils.is_valid_document("111.444.777-35") is True
    assert DocumentUtils.is_valid_document("11.222.333/0001-81") is True
    assert DocumentUtils.is_valid_document("11222333000180") is False
    assert DocumentUtils.is_valid_document("123456789012") is False


def test_format_document_switches_mask_after_eleven_digits():
    assert DocumentUtils.format_document("11144477735") == "111.444.777-35"
    assert DocumentUtils.format_document("111444777351") == "11.144.477/7351"
    assert DocumentUtils.format_document("11.222.333/0001-81") == "11.222.333/0001-81"
    assert DocumentUtils.format_document("") == ""


def test_generate_id_shape_and_uniqueness():
    first, second = generate_id(), generate_id()
    assert first != second
    for value in (first, second):
        assert re.fullmatch(r"[a-z0-9]+", value)
    assert len({generate_id() for _ in range(1000)}) == 1000
    assert len(generate_id(4)) == 4
