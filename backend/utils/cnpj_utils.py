"""
Módulo utilitário para validação, normalização e formatação de CNPJ.
"""
from typing import List, Tuple

from backend.utils.digits import apply_mask, is_repeated, only_digits

CNPJ_LENGTH = 14
CNPJ_MASK = "##.###.###/####-##"

FIRST_WEIGHTS: List[int] = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
SECOND_WEIGHTS: List[int] = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


class CNPJUtils:
    @staticmethod
    def normalize_cnpj(cnpj: str) -> str:
        """
        Remove caracteres não numéricos do CNPJ.
        Exemplo: '11.222.333/0001-81' -> '11222333000181'
        """
        return only_digits(cnpj)

    @staticmethod
    def _check_digit(base: str, weights: List[int]) -> int:
        soma = sum(int(d) * w for d, w in zip(base, weights))
        resto = soma % 11
        return 0 if resto < 2 else 11 - resto

    @staticmethod
    def check_digits(base: str) -> Tuple[int, int]:
        """
        Calcula os dois dígitos verificadores para os 12 primeiros dígitos do CNPJ.
        Parâmetros:
            base (str): 12 dígitos (pontuação é ignorada)
        Retorno:
            Tuple[int, int]: primeiro e segundo dígitos verificadores
        """
        base = only_digits(base)
        if len(base) != CNPJ_LENGTH - 2:
            raise ValueError("base do CNPJ deve ter 12 dígitos")
        first = CNPJUtils._check_digit(base, FIRST_WEIGHTS)
        second = CNPJUtils._check_digit(base + str(first), SECOND_WEIGHTS)
        return first, second

    @staticmethod
    def is_valid_cnpj(cnpj: str) -> bool:
        """
        Valida CNPJ pelo algoritmo dos dígitos verificadores (módulo 11).
        Parâmetros:
            cnpj (str): CNPJ com ou sem pontuação
        Retorno:
            bool: True se válido, False caso contrário
        """
        cnpj = CNPJUtils.normalize_cnpj(cnpj)
        if len(cnpj) != CNPJ_LENGTH or is_repeated(cnpj):
            return False
        first, second = CNPJUtils.check_digits(cnpj[:12])
        return int(cnpj[12]) == first and int(cnpj[13]) == second

    @staticmethod
    def format_cnpj(cnpj: str) -> str:
        """Formata progressivamente no padrão XX.XXX.XXX/XXXX-XX."""
        return apply_mask(CNPJUtils.normalize_cnpj(cnpj), CNPJ_MASK)
