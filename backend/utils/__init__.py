"""
Superfície funcional de documentos brasileiros (CPF/CNPJ).
"""
from backend.utils.cnpj_utils import CNPJUtils
from backend.utils.cpf_utils import CPFUtils
from backend.utils.digits import only_digits
from backend.utils.document_utils import DocumentUtils
from backend.utils.id_utils import generate_id

normalize = only_digits
validate_cpf = CPFUtils.is_valid_cpf
validate_cnpj = CNPJUtils.is_valid_cnpj
format_cpf = CPFUtils.format_cpf
format_cnpj = CNPJUtils.format_cnpj

__all__ = [
    "CNPJUtils",
    "CPFUtils",
    "DocumentUtils",
    "format_cnpj",
    "format_cpf",
    "generate_id",
    "normalize",
    "validate_cnpj",
    "validate_cpf",
]
