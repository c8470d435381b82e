from typing import List, Dict, Any
from fastapi import FastAPI, status, HTTPException, Depends, Path
import logging
import uvicorn
from bson import ObjectId
from datetime import datetime
from backend import config
from backend.mongo.db import connect_to_mongo, close_mongo_connection, get_collection
from backend.auth.basic import basic_auth
from backend.api.services.producer_service import ProducerService
from backend.utils import generate_id
from backend.utils.cnpj_utils import CNPJUtils
from backend.utils.cpf_utils import CPFUtils
from backend.utils.digits import only_digits
from backend.utils.document_utils import DocumentUtils, KIND_CPF, KIND_CNPJ

logger = logging.getLogger(__name__)

app = FastAPI(title="Producers API", version="1.0.0")

producer_service = ProducerService(config.REDIS_URL, config.PRODUCERS_QUEUE)

FORMATTERS = {
    KIND_CPF: CPFUtils.format_cpf,
    KIND_CNPJ: CNPJUtils.format_cnpj,
}


# Conexão MongoDB no ciclo de vida da aplicação
@app.on_event("startup")
async def on_startup() -> None:
    logger.info("Iniciando evento de startup da API")
    await connect_to_mongo()
    logger.info("Conexão com MongoDB estabelecida")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    logger.info("Iniciando evento de shutdown da API")
    await close_mongo_connection()
    logger.info("Conexão com MongoDB encerrada")


@app.get("/")
async def root(_: str = Depends(basic_auth)) -> dict:
    """
    Endpoint de status da API (também usado pelo console para validar credenciais).
    """
    return {"status": "ok"}


def _require_document(payload: Dict[str, Any]) -> str:
    document = payload.get("document")
    if not isinstance(document, str):
        logger.warning(f"Payload sem document: {payload}")
        raise HTTPException(status_code=400, detail="Campo obrigatório: document (texto)")
    return document


#########
@app.post("/api/v1/documents/validate")
async def validate_document(payload: Dict[str, Any], _: str = Depends(basic_auth)) -> dict:
    """
    Valida um CPF ou CNPJ (tipo inferido pela quantidade de dígitos).
    Parâmetros:
        payload (dict): {"document": "..."}
        _: autenticação básica
    Retorno:
        dict: document, digits, kind, valid, formatted
    """
    document = _require_document(payload)
    kind = DocumentUtils.detect_kind(document)
    valid = DocumentUtils.is_valid_document(document)
    formatted = FORMATTERS[kind](document) if kind else DocumentUtils.format_document(document)
    logger.info(f"Validação de documento: kind={kind}, valid={valid}")
    return {
        "document": document,
        "digits": only_digits(document),
        "kind": kind,
        "valid": valid,
        "formatted": formatted,
    }


#########
@app.post("/api/v1/documents/format")
async def format_document(payload: Dict[str, Any], _: str = Depends(basic_auth)) -> dict:
    """
    Formata um documento. Sem 'kind', aplica a regra de digitação
    (CPF até 11 dígitos, CNPJ a partir de 12).
    """
    document = _require_document(payload)
    kind = payload.get("kind")
    if kind is None:
        formatted = DocumentUtils.format_document(document)
    elif kind in FORMATTERS:
        formatted = FORMATTERS[kind](document)
    else:
        logger.warning(f"Tipo de documento desconhecido: kind={kind}")
        raise HTTPException(status_code=400, detail="kind deve ser 'cpf' ou 'cnpj'")
    return {"document": document, "formatted": formatted}


#########
@app.get("/api/v1/ids")
async def new_id(_: str = Depends(basic_auth)) -> dict:
    return {"id": generate_id()}


######### Producers endpoints
def bson_to_json(val):
    if isinstance(val, dict):
        return {k: bson_to_json(v) for k, v in val.items()}
    elif isinstance(val, list):
        return [bson_to_json(v) for v in val]
    elif isinstance(val, ObjectId):
        return str(val)
    elif isinstance(val, datetime):
        return val.isoformat()
    else:
        return val


def _producer_out(doc: dict) -> dict:
    result = bson_to_json(doc)
    result["producer_id"] = result.pop("_id")
    result["cpf_cnpj_formatado"] = DocumentUtils.format_document(result.get("cpf_cnpj", ""))
    return result


def _object_id(producer_id: str) -> ObjectId:
    if not ObjectId.is_valid(producer_id):
        logger.warning(f"producer_id inválido: {producer_id}")
        raise HTTPException(status_code=400, detail="producer_id inválido")
    return ObjectId(producer_id)


@app.post("/api/v1/producers", status_code=status.HTTP_201_CREATED)
async def request_registration(payload: Dict[str, Any], _: str = Depends(basic_auth)) -> Dict[str, Any]:
    """
    Endpoint de cadastro de produtor. Valida dados, persiste e enfileira no Redis.
    Parâmetros:
        payload (dict): cpf_cnpj, nome, fazendas
        _: autenticação básica
    Retorno:
        dict: producer_id e status
    """
    result = await producer_service.request_registration(payload)
    logger.info(f"Cadastro processado: retorno={result}")
    return result


@app.get("/api/v1/producers")
async def list_producers(_: str = Depends(basic_auth)) -> List[dict]:
    coll = get_collection("producers")
    items: List[dict] = []
    async for doc in coll.find().sort("created_at", 1):
        items.append(_producer_out(doc))
    logger.info(f"Listando produtores: total={len(items)}")
    return items


@app.get("/api/v1/producers/{producer_id}")
async def get_producer(producer_id: str = Path(..., description="ID do produtor"), _: str = Depends(basic_auth)) -> dict:
    """
    Consulta um produtor (inclui o status do cadastro).
    """
    obj_id = _object_id(producer_id)
    doc = await get_collection("producers").find_one({"_id": obj_id})
    if not doc:
        logger.warning(f"Produtor não encontrado: producer_id={producer_id}")
        raise HTTPException(status_code=404, detail="Produtor não encontrado")
    logger.debug(f"Dados brutos do produtor: {doc}")
    return _producer_out(doc)


@app.delete("/api/v1/producers/{producer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_producer(producer_id: str, _: str = Depends(basic_auth)) -> None:
    logger.info(f"Solicitação de remoção de produtor: producer_id={producer_id}")
    obj_id = _object_id(producer_id)
    res = await get_collection("producers").delete_one({"_id": obj_id})
    if res.deleted_count == 0:
        logger.warning(f"Produtor não encontrado para remoção: producer_id={producer_id}")
        raise HTTPException(status_code=404, detail="Produtor não encontrado")
    logger.info(f"Produtor removido: producer_id={producer_id}")
    return None


######### ------------------------------ #########
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    logger.info(f"Starting Uvicorn server on {config.API_HOST}:{config.API_PORT}")
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
