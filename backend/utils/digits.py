"""
Funções de baixo nível compartilhadas pelos utilitários de CPF e CNPJ:
extração de dígitos e aplicação progressiva de máscaras.
"""
import re

_NON_DIGIT = re.compile(r"[^0-9]")


def only_digits(value: str) -> str:
    """
    Remove todo caractere que não seja um dígito ASCII (0-9), preservando a ordem.
    Parâmetros:
        value (str): texto em qualquer formato (None é tratado como vazio)
    Retorno:
        str: apenas os dígitos
    Exemplo: '111.444.777-35' -> '11144477735'
    """
    return _NON_DIGIT.sub("", value or "")


def is_repeated(digits: str) -> bool:
    # '00000000000', '11111111111111', ...
    return bool(digits) and digits == digits[0] * len(digits)


def apply_mask(digits: str, mask: str) -> str:
    """
    Aplica uma máscara ('#' = dígito) sobre uma sequência possivelmente parcial.
    Um separador só é inserido quando existe ao menos um dígito depois dele;
    dígitos que excedem a máscara são descartados.
    Exemplo: apply_mask('1234', '###.###.###-##') -> '123.4'
    """
    out = []
    pos = 0
    for char in mask:
        if pos >= len(digits):
            break
        if char == "#":
            out.append(digits[pos])
            pos += 1
        else:
            out.append(char)
    return "".join(out)
