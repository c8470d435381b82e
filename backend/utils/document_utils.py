"""
Despacho entre CPF e CNPJ para campos que aceitam qualquer um dos dois
documentos (ex.: o campo CPF/CNPJ do cadastro de produtor).
"""
from typing import Optional

from backend.utils.cnpj_utils import CNPJ_LENGTH, CNPJUtils
from backend.utils.cpf_utils import CPF_LENGTH, CPFUtils
from backend.utils.digits import only_digits

KIND_CPF = "cpf"
KIND_CNPJ = "cnpj"


class DocumentUtils:
    @staticmethod
    def detect_kind(document: str) -> Optional[str]:
        """
        Identifica o tipo de documento pela quantidade de dígitos.
        Parâmetros:
            document (str): documento em qualquer formato
        Retorno:
            Optional[str]: 'cpf' (11 dígitos), 'cnpj' (14 dígitos) ou None
        """
        size = len(only_digits(document))
        if size == CPF_LENGTH:
            return KIND_CPF
        if size == CNPJ_LENGTH:
            return KIND_CNPJ
        return None

    @staticmethod
    def is_valid_document(document: str) -> bool:
        kind = DocumentUtils.detect_kind(document)
        if kind == KIND_CPF:
            return CPFUtils.is_valid_cpf(document)
        if kind == KIND_CNPJ:
            return CNPJUtils.is_valid_cnpj(document)
        return False

    @staticmethod
    def format_document(document: str) -> str:
        """
        Formatação a cada tecla digitada: máscara de CPF enquanto houver até
        11 dígitos, máscara de CNPJ a partir do 12º.
        """
        digits = only_digits(document)
        if len(digits) <= CPF_LENGTH:
            return CPFUtils.format_cpf(digits)
        return CNPJUtils.format_cnpj(digits)
