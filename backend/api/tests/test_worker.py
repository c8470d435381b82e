import json

import pytest

from backend.worker import consumer_producer as worker_module
from backend.worker.consumer_producer import LOG, ProducerProcessor


@pytest.fixture
def processor(fake_collection, monkeypatch):
    monkeypatch.setattr(worker_module, "get_collection", lambda name: fake_collection)
    return ProducerProcessor("producers_queue", "producers_dlq", LOG)


async def stored(coll, cpf_cnpj, status="queued"):
    res = await coll.insert_one({"cpf_cnpj": cpf_cnpj, "nome": "Produtor", "status": status})
    return str(res.inserted_id)


@pytest.mark.asyncio
async def test_registers_valid_producer(processor, fake_collection, fake_redis):
    producer_id = await stored(fake_collection, "11144477735")
    result = await processor.process_message(json.dumps({"producer_id": producer_id}), fake_redis)
    assert result == "registered"
    doc = next(iter(fake_collection.docs.values()))
    assert doc["status"] == "registered"
    assert "processed_at" in doc


@pytest.mark.asyncio
async def test_rejects_invalid_document(processor, fake_collection, fake_redis):
    producer_id = await stored(fake_collection, "11222333000180")
    result = await processor.process_message(json.dumps({"producer_id": producer_id}), fake_redis)
    assert result == "rejected"
    doc = next(iter(fake_collection.docs.values()))
    assert doc["reason"] == "documento_invalido"


@pytest.mark.asyncio
async def test_skips_already_processed(processor, fake_collection, fake_redis):
    producer_id = await stored(fake_collection, "11144477735", status="registered")
    assert await processor.process_message(json.dumps({"producer_id": producer_id}), fake_redis) is None
    assert await processor.process_message(json.dumps({"nome": "sem id"}), fake_redis) is None


@pytest.mark.asyncio
async def test_broken_message_goes_to_dlq(processor, fake_redis):
    result = await processor.process_message("{nao é json", fake_redis)
    assert result == "failed"
    assert fake_redis.lists["producers_dlq"] == ["{nao é json"]
