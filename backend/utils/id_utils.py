import random
import string

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


def generate_id(length: int = ID_LENGTH) -> str:
    """
    Gera um identificador curto (minúsculas e dígitos) para chavear itens de
    listas efêmeras. Não é criptográfico nem persistente.
    """
    return "".join(random.choices(ID_ALPHABET, k=length))
