"""
Serviço de cadastro de produtor: encapsula validação do documento (CPF/CNPJ)
e das fazendas, persistência no MongoDB e publicação na fila do Redis.
"""
from typing import Dict, Any, List, Optional
from fastapi import HTTPException
from bson import ObjectId
from datetime import datetime
from pymongo.errors import DuplicateKeyError
import redis.asyncio as redis
import json
import logging
from backend.mongo.db import get_collection
from backend.utils.cnpj_utils import CNPJUtils
from backend.utils.cpf_utils import CPFUtils
from backend.utils.document_utils import DocumentUtils, KIND_CPF
from backend.utils.estados import ESTADOS_BRASILEIROS

MIN_NAME_LENGTH = 2


def build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
    return logger


def _to_area(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{label} deve ser numérico")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{label} deve ser numérico")


class ProducerService:
    def __init__(self, redis_url: str, queue_key: str, logger: Optional[logging.Logger] = None):
        """
        Inicializa o serviço de cadastro.
        Parâmetros:
            redis_url (str): URL do Redis
            queue_key (str): Nome da fila de cadastros
            logger (logging.Logger, opcional): Logger para logs
        """
        self.redis_url = redis_url
        self.queue_key = queue_key
        self.logger = logger or build_logger("producer_service")

    def validate_document(self, cpf_cnpj: str) -> str:
        """
        Valida o documento do produtor e devolve apenas os dígitos.
        Levanta HTTPException 422 para tamanho inesperado ou dígito verificador incorreto.
        """
        kind = DocumentUtils.detect_kind(cpf_cnpj)
        if kind is None:
            self.logger.warning(f"Documento com tamanho inválido: cpf_cnpj={cpf_cnpj}")
            raise HTTPException(status_code=422, detail="CPF deve ter 11 dígitos ou CNPJ deve ter 14 dígitos")
        if kind == KIND_CPF:
            if not CPFUtils.is_valid_cpf(cpf_cnpj):
                self.logger.warning(f"CPF inválido detectado: cpf={cpf_cnpj}")
                raise HTTPException(status_code=422, detail="CPF inválido")
            return CPFUtils.normalize_cpf(cpf_cnpj)
        if not CNPJUtils.is_valid_cnpj(cpf_cnpj):
            self.logger.warning(f"CNPJ inválido detectado: cnpj={cpf_cnpj}")
            raise HTTPException(status_code=422, detail="CNPJ inválido")
        return CNPJUtils.normalize_cnpj(cpf_cnpj)

    def validate_safras(self, safras: Any, area_agricultavel: float, index: int) -> List[Dict[str, Any]]:
        """
        Valida as safras de uma fazenda.
        Cada safra exige ano, nome e ao menos uma cultura. Uma cultura é um nome
        ou um objeto {cultura, area_plantada}; a área plantada deve ser positiva e
        a soma das áreas da safra não pode exceder a área agricultável.
        Parâmetros:
            safras: lista recebida no payload (None equivale a vazia)
            area_agricultavel (float): área agricultável da fazenda
            index (int): posição da fazenda, usada nas mensagens
        Retorno:
            List[dict]: safras normalizadas
        """
        if safras is None:
            return []
        if not isinstance(safras, list):
            raise HTTPException(status_code=400, detail=f"fazendas[{index}].safras deve ser uma lista")
        result = []
        for j, safra in enumerate(safras):
            label = f"fazendas[{index}].safras[{j}]"
            if not isinstance(safra, dict):
                raise HTTPException(status_code=400, detail=f"{label} deve ser um objeto")
            ano = safra.get("ano")
            nome = safra.get("nome")
            culturas = safra.get("culturas_plantadas")
            if isinstance(ano, bool) or not isinstance(ano, int) or ano <= 0:
                raise HTTPException(status_code=422, detail=f"{label}.ano é obrigatório")
            if not isinstance(nome, str) or not nome.strip():
                raise HTTPException(status_code=422, detail=f"{label}.nome é obrigatório")
            if not isinstance(culturas, list) or not culturas:
                raise HTTPException(status_code=422, detail="Preencha todos os campos da safra e adicione pelo menos uma cultura.")

            plantadas = []
            area_plantada_total = 0.0
            for k, cultura in enumerate(culturas):
                if isinstance(cultura, str) and cultura.strip():
                    plantadas.append(cultura.strip())
                    continue
                if not isinstance(cultura, dict) or not str(cultura.get("cultura") or "").strip():
                    raise HTTPException(status_code=422, detail=f"{label}.culturas_plantadas[{k}] inválida")
                area = _to_area(cultura.get("area_plantada", 0), f"{label}.culturas_plantadas[{k}].area_plantada")
                if area <= 0:
                    raise HTTPException(status_code=422, detail="Todas as culturas devem ter área plantada maior que zero.")
                area_plantada_total += area
                plantadas.append({"cultura": str(cultura["cultura"]).strip(), "area_plantada": area})
            if area_plantada_total > area_agricultavel:
                self.logger.warning(f"Área plantada excede a agricultável: {label}, total={area_plantada_total}")
                raise HTTPException(
                    status_code=422,
                    detail=f"A soma das áreas plantadas ({area_plantada_total:g} ha) não pode exceder a área agricultável ({area_agricultavel:g} ha).",
                )
            result.append({"ano": ano, "nome": nome.strip(), "culturas_plantadas": plantadas})
        return result

    def validate_fazendas(self, fazendas: Any) -> List[Dict[str, Any]]:
        """
        Valida as fazendas do produtor: campos obrigatórios, UF conhecida, área
        total positiva e soma de área agricultável e vegetação dentro da total.
        Retorno:
            List[dict]: fazendas normalizadas (áreas como float, UF em maiúsculas)
        """
        if fazendas is None:
            return []
        if not isinstance(fazendas, list):
            raise HTTPException(status_code=400, detail="fazendas deve ser uma lista")
        result = []
        for i, fazenda in enumerate(fazendas):
            if not isinstance(fazenda, dict):
                raise HTTPException(status_code=400, detail=f"fazendas[{i}] deve ser um objeto")
            for field in ("nome_fazenda", "cidade", "estado"):
                value = fazenda.get(field)
                if not isinstance(value, str) or not value.strip():
                    raise HTTPException(status_code=422, detail=f"fazendas[{i}].{field} é obrigatório")
            estado = fazenda["estado"].strip().upper()
            if estado not in ESTADOS_BRASILEIROS:
                raise HTTPException(status_code=422, detail=f"fazendas[{i}].estado inválido: {estado}")
            area_total = _to_area(fazenda.get("area_total", 0), f"fazendas[{i}].area_total")
            area_agricultavel = _to_area(fazenda.get("area_agricultavel", 0), f"fazendas[{i}].area_agricultavel")
            area_vegetacao = _to_area(fazenda.get("area_vegetacao", 0), f"fazendas[{i}].area_vegetacao")
            if area_total <= 0:
                raise HTTPException(status_code=422, detail="Área total deve ser maior que zero")
            if area_agricultavel < 0 or area_vegetacao < 0:
                raise HTTPException(status_code=422, detail="Áreas não podem ser negativas")
            if area_agricultavel + area_vegetacao > area_total:
                self.logger.warning(f"Soma de áreas excede a total: fazenda={fazenda}")
                raise HTTPException(
                    status_code=422,
                    detail="A soma da área agricultável e vegetação não pode ser maior que a área total",
                )
            result.append({
                "nome_fazenda": fazenda["nome_fazenda"].strip(),
                "cidade": fazenda["cidade"].strip(),
                "estado": estado,
                "area_total": area_total,
                "area_agricultavel": area_agricultavel,
                "area_vegetacao": area_vegetacao,
                "safras": self.validate_safras(fazenda.get("safras"), area_agricultavel, i),
            })
        return result

    def validate_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validação completa do payload, sem I/O.
        Parâmetros:
            payload (dict): dados do produtor (cpf_cnpj, nome, fazendas)
        Retorno:
            dict: documento pronto para persistência (sem status/datas)
        """
        cpf_cnpj = payload.get("cpf_cnpj")
        nome = payload.get("nome")
        if cpf_cnpj is None or nome is None:
            self.logger.warning(f"Payload incompleto: {payload}")
            raise HTTPException(status_code=400, detail="Campos obrigatórios: cpf_cnpj, nome")
        if not isinstance(cpf_cnpj, str) or not isinstance(nome, str):
            raise HTTPException(status_code=400, detail="cpf_cnpj e nome devem ser texto")
        if len(nome.strip()) < MIN_NAME_LENGTH:
            self.logger.warning(f"Nome curto demais: nome={nome!r}")
            raise HTTPException(status_code=400, detail="Nome deve ter pelo menos 2 caracteres")

        digits = self.validate_document(cpf_cnpj)
        return {
            "cpf_cnpj": digits,
            "document_kind": DocumentUtils.detect_kind(digits),
            "nome": nome.strip(),
            "fazendas": self.validate_fazendas(payload.get("fazendas")),
        }

    async def request_registration(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Realiza a solicitação de cadastro: valida dados, persiste no banco e enfileira no Redis.
        Parâmetros:
            payload (dict): dados do produtor
        Retorno:
            dict: id e status do cadastro
        """
        self.logger.info(f"Recebendo payload de cadastro de produtor: {payload}")
        doc = self.validate_payload(payload)

        coll = get_collection("producers")
        if await coll.find_one({"cpf_cnpj": doc["cpf_cnpj"]}):
            self.logger.warning(f"Documento já cadastrado: cpf_cnpj={doc['cpf_cnpj']}")
            raise HTTPException(status_code=409, detail="CPF/CNPJ já cadastrado")

        now = datetime.utcnow()
        doc.update({"status": "queued", "created_at": now, "updated_at": now})
        try:
            res = await coll.insert_one(doc)
        except DuplicateKeyError:
            self.logger.warning(f"Documento já cadastrado (índice único): cpf_cnpj={doc['cpf_cnpj']}")
            raise HTTPException(status_code=409, detail="CPF/CNPJ já cadastrado")
        producer_id = str(res.inserted_id)
        self.logger.info(f"Produtor criado: producer_id={producer_id}")

        # Mensageria: enfileira cadastro no Redis
        msg = {"producer_id": producer_id, "cpf_cnpj": doc["cpf_cnpj"], "nome": doc["nome"], "created_at": now.isoformat()}
        try:
            r = redis.from_url(self.redis_url)
            try:
                await r.rpush(self.queue_key, json.dumps(msg))
            finally:
                await r.close()
            self.logger.info(f"Cadastro enfileirado no Redis: msg={msg}")
        except Exception:
            self.logger.exception(f"Erro ao enfileirar cadastro: producer_id={producer_id}")
            await coll.update_one({"_id": ObjectId(producer_id)}, {"$set": {"status": "failed", "updated_at": datetime.utcnow(), "reason": "enqueue_error"}})
            raise HTTPException(status_code=500, detail="Erro ao enfileirar a solicitação")

        result = {"producer_id": producer_id, "status": "queued"}
        self.logger.info(f"Retorno do cadastro: {result}")
        return result
