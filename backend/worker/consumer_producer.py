import asyncio
import json
import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
import redis.asyncio as redis
from backend import config
from backend.mongo.db import connect_to_mongo, close_mongo_connection, get_collection
from backend.utils.document_utils import DocumentUtils

LOG = logging.getLogger("consumer_producer")
LOG.setLevel(logging.INFO)
if not LOG.hasHandlers():
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    LOG.addHandler(handler)


# ------------------- Classe principal do worker -------------------
class ProducerProcessor:
    def __init__(self, queue_key: str, dlq_key: str, logger: logging.Logger, min_interval: float = 0.0):
        """
        Inicializa o processador de cadastros de produtor.
        Parâmetros:
            queue_key (str): Nome da fila principal
            dlq_key (str): Nome da fila de dead-letter
            logger (logging.Logger): Logger para logs
            min_interval (float): tempo mínimo, em segundos, gasto por mensagem
        """
        self.logger = logger
        self.queue_key = queue_key
        self.dlq_key = dlq_key
        self.min_interval = min_interval

    async def _update_status(self, producer_id, coll, status, extra=None) -> None:
        """
        Atualiza status do cadastro no banco.
        Parâmetros:
            producer_id (str): ID do produtor
            coll: Coleção MongoDB de produtores
            status (str): Novo status
            extra (dict, opcional): Campos extras para atualizar
        """
        update = {"status": status, "updated_at": datetime.utcnow()}
        if extra:
            update.update(extra)
        await coll.update_one({"_id": ObjectId(producer_id)}, {"$set": update})
        self.logger.info(f"Status atualizado: producer_id={producer_id}, status={status}, extra={extra}")

    async def _handle_processing_error(self, producer_id, coll, r, msg, exc) -> None:
        """
        Lida com erro de processamento: marca o produtor como failed e envia a mensagem para a DLQ.
        """
        self.logger.exception(f"Erro ao processar mensagem: {exc}")
        try:
            if producer_id and coll is not None:
                await self._update_status(producer_id, coll, "failed", {"reason": "processing_error"})
        except Exception as e:
            self.logger.exception(f"Erro ao marcar produtor como failed: {e}")
        try:
            await r.rpush(self.dlq_key, msg)
        except Exception as e:
            self.logger.exception(f"Erro ao empurrar para DLQ: {e}")

    async def process_message(self, msg: str, r: redis.Redis) -> Optional[str]:
        """
        Processa uma mensagem de cadastro da fila.
        Parâmetros:
            msg (str): Mensagem JSON do cadastro
            r: Instância Redis
        Retorno:
            Optional[str]: status final gravado, ou None se a mensagem foi ignorada
        """
        self.logger.info(f"Recebendo mensagem da fila: {msg}")
        loop = asyncio.get_running_loop()
        start = loop.time()
        producer_id = None
        coll = None
        try:
            data = json.loads(msg)
            producer_id = data.get("producer_id")
            if not producer_id:
                self.logger.warning(f"Mensagem sem producer_id: {data}")
                return None

            coll = get_collection("producers")
            producer = await coll.find_one({"_id": ObjectId(producer_id)})
            if not producer:
                self.logger.warning(f"Produtor não encontrado: {producer_id}")
                return None

            # Idempotência: só processa se status for queued ou None
            status = producer.get("status")
            if status not in ("queued", None):
                self.logger.info(f"Produtor {producer_id} já processado (status={status}), pulando")
                return None

            await self._update_status(producer_id, coll, "processing")

            cpf_cnpj = producer.get("cpf_cnpj") or data.get("cpf_cnpj") or ""
            if not DocumentUtils.is_valid_document(cpf_cnpj):
                self.logger.warning(f"Documento inválido no cadastro: producer_id={producer_id}, cpf_cnpj={cpf_cnpj}")
                await self._update_status(producer_id, coll, "rejected", {"reason": "documento_invalido"})
                return "rejected"

            await self._update_status(producer_id, coll, "registered", {"processed_at": datetime.utcnow()})
            self.logger.info(f"Produtor {producer_id} cadastrado com sucesso")
            return "registered"

        except Exception as exc:
            await self._handle_processing_error(producer_id, coll, r, msg, exc)
            return "failed"
        finally:
            elapsed = loop.time() - start
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)


####################
async def main() -> None:
    """
    Loop principal do worker. Conecta aos serviços, consome fila e processa cadastros.
    """
    LOG.info("Conectando ao MongoDB e Redis...")
    await connect_to_mongo()
    r = redis.from_url(config.REDIS_URL)
    processor = ProducerProcessor(config.PRODUCERS_QUEUE, config.PRODUCERS_DLQ, LOG)
    try:
        while True:
            try:
                item = await r.brpop(config.PRODUCERS_QUEUE, timeout=5)
                if not item:
                    await asyncio.sleep(0.5)
                    continue
                # item é uma tupla (key, value)
                _, value = item
                if isinstance(value, bytes):
                    value = value.decode()
                LOG.debug(f"Mensagem recebida da fila: {value}")
                await processor.process_message(value, r)
            except asyncio.CancelledError:
                raise
            except Exception:
                LOG.exception("Erro no loop do consumer")
                await asyncio.sleep(1)
    finally:
        await r.close()
        await close_mongo_connection()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        LOG.info("Worker finalizado pelo usuário")
