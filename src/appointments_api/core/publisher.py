"""ブローカーへのパブリッシュを結果オブジェクトに畳み込むゲートウェイ。

無効時は I/O を行わず `PublishDisabled` を返し、有効時は送信結果を
`PublishSucceeded` / `PublishFailed` に変換する。送信エラーはこの境界より外へ
投げない（キャンセルのみ記録した上で再送出する）。
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from aiokafka.errors import KafkaError

from appointments_api.clients import kafka_client
from appointments_api.core.logging import log_publish_error
from appointments_api.core.models import (
    PublishDisabled,
    PublishFailed,
    PublishOutcome,
    PublishSucceeded,
)
from appointments_api.core.settings import Settings

DISABLED_REASON = "Kafka publishing disabled."
NOT_INITIALIZED_ERROR = "Kafka producer not initialized."
_DEFAULT_GRACE_SECONDS = 5.0


class KafkaPublisher:
    """Producer を保持し、1メッセージ単位で送信する。"""

    def __init__(
        self,
        *,
        topic: str,
        enabled: bool,
        producer: Any | None = None,
        shutdown_grace_seconds: float = _DEFAULT_GRACE_SECONDS,
    ) -> None:
        self._topic = topic
        self._enabled = enabled
        self._producer = producer if enabled else None
        self._shutdown_grace_seconds = shutdown_grace_seconds

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def publish(self, payload: bytes) -> PublishOutcome:
        """ペイロードを設定済みトピックへ送信し、ack を待つ。"""

        if not self._enabled:
            return PublishDisabled(reason=DISABLED_REASON)

        if self._producer is None:
            return PublishFailed(error=NOT_INITIALIZED_ERROR)

        try:
            metadata = await self._producer.send_and_wait(self._topic, payload)
        except asyncio.CancelledError:
            # 呼び出し元のキャンセル。失敗として記録し、再試行はしない。
            log_publish_error(topic=self._topic, error="publish cancelled by caller")
            raise
        except Exception as exc:
            log_publish_error(topic=self._topic, error=exc)
            return PublishFailed(error=str(exc) or exc.__class__.__name__)

        return PublishSucceeded(
            topic=metadata.topic,
            partition=metadata.partition,
            offset=metadata.offset,
        )

    async def close(self) -> None:
        """猶予時間内で flush した後に Producer を停止する。

        flush / stop はそれぞれ猶予時間で打ち切る。
        """

        producer, self._producer = self._producer, None
        if producer is None:
            return
        try:
            await asyncio.wait_for(producer.flush(), timeout=self._shutdown_grace_seconds)
        except asyncio.TimeoutError:
            log_publish_error(
                topic=self._topic,
                error=f"flush did not finish within {self._shutdown_grace_seconds}s",
            )
        finally:
            await self._stop(producer)

    async def _stop(self, producer: Any) -> None:
        try:
            await asyncio.wait_for(producer.stop(), timeout=self._shutdown_grace_seconds)
        except asyncio.TimeoutError:
            log_publish_error(
                topic=self._topic,
                error=f"stop did not finish within {self._shutdown_grace_seconds}s",
            )


@asynccontextmanager
async def open_publisher(settings: Settings) -> AsyncIterator[KafkaPublisher]:
    """プロセス寿命の Publisher を開き、終了時に必ず解放する。"""

    topic = settings.kafka_topic_appointments_created
    if not settings.kafka_enabled:
        yield KafkaPublisher(topic=topic, enabled=False)
        return

    producer = kafka_client.producer_from_settings(settings)
    try:
        await producer.start()
    except KafkaError as exc:
        # 起動できなくてもサービスは受け付けを続け、送信は失敗として扱う。
        log_publish_error(topic=topic, error=exc)
        await producer.stop()
        producer = None

    publisher = KafkaPublisher(
        topic=topic,
        enabled=True,
        producer=producer,
        shutdown_grace_seconds=settings.kafka_shutdown_grace_seconds,
    )
    try:
        yield publisher
    finally:
        await publisher.close()
