"""aiokafka Producer の生成ヘルパー。"""

from __future__ import annotations

from aiokafka import AIOKafkaProducer

from appointments_api.core.settings import Settings


def create_producer(*, bootstrap_servers: str, client_id: str) -> AIOKafkaProducer:
    """全レプリカ ack 待ちの Producer を返す。起動は呼び出し側で行う。"""

    return AIOKafkaProducer(
        bootstrap_servers=bootstrap_servers,
        client_id=client_id,
        acks="all",
    )


def producer_from_settings(settings: Settings) -> AIOKafkaProducer:
    """Settings から接続先を取り出して Producer を生成する。"""

    return create_producer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        client_id=settings.kafka_client_id,
    )
