"""Fixed-delay pacing for calls against the profile API."""
import time
from typing import Callable

ITEM_DELAY_SECONDS = 2.0
BATCH_DELAY_SECONDS = 5.0


class Pacer:
    """Politeness delays between items and between batches.

    ``sleep`` is injectable for tests.
    """

    def __init__(
        self,
        item_delay: float = ITEM_DELAY_SECONDS,
        batch_delay: float = BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.item_delay = item_delay
        self.batch_delay = batch_delay
        self.sleep = sleep

    def after_item(self) -> None:
        if self.item_delay > 0:
            self.sleep(self.item_delay)

    def after_batch(self) -> None:
        if self.batch_delay > 0:
            self.sleep(self.batch_delay)
