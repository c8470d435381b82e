"""
Módulo utilitário para validação, normalização e formatação de CPF.
Funções reutilizáveis e testáveis, sem estado.
"""
from typing import Tuple

from backend.utils.digits import apply_mask, is_repeated, only_digits

CPF_LENGTH = 11
CPF_MASK = "###.###.###-##"


class CPFUtils:
    @staticmethod
    def normalize_cpf(cpf: str) -> str:
        """
        Remove caracteres não numéricos do CPF.
        Parâmetros:
            cpf (str): CPF em qualquer formato
        Retorno:
            str: CPF apenas com dígitos
        Exemplo: '123.456.789-09' -> '12345678909'
        """
        return only_digits(cpf)

    @staticmethod
    def _check_digit(base: str) -> int:
        # pesos decrescentes terminando em 2: 10..2 para 9 dígitos, 11..2 para 10
        weight = len(base) + 1
        soma = sum(int(d) * (weight - i) for i, d in enumerate(base))
        resto = soma % 11
        return 0 if resto < 2 else 11 - resto

    @staticmethod
    def check_digits(base: str) -> Tuple[int, int]:
        """
        Calcula os dois dígitos verificadores para os 9 primeiros dígitos do CPF.
        Parâmetros:
            base (str): 9 dígitos (pontuação é ignorada)
        Retorno:
            Tuple[int, int]: primeiro e segundo dígitos verificadores
        """
        base = only_digits(base)
        if len(base) != CPF_LENGTH - 2:
            raise ValueError("base do CPF deve ter 9 dígitos")
        first = CPFUtils._check_digit(base)
        second = CPFUtils._check_digit(base + str(first))
        return first, second

    @staticmethod
    def is_valid_cpf(cpf: str) -> bool:
        """
        Valida CPF pelo algoritmo dos dígitos verificadores (módulo 11).
        Parâmetros:
            cpf (str): CPF com ou sem pontuação
        Retorno:
            bool: True se válido, False caso contrário
        """
        cpf = CPFUtils.normalize_cpf(cpf)
        if len(cpf) != CPF_LENGTH or is_repeated(cpf):
            return False
        first, second = CPFUtils.check_digits(cpf[:9])
        return int(cpf[9]) == first and int(cpf[10]) == second

    @staticmethod
    def format_cpf(cpf: str) -> str:
        """
        Formata progressivamente no padrão XXX.XXX.XXX-XX.
        Aceita entrada parcial (digitação em andamento); nunca falha.
        """
        return apply_mask(CPFUtils.normalize_cpf(cpf), CPF_MASK)
