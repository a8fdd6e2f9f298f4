"""Bounded-concurrency dispatch of requests to a driver."""

import asyncio
import logging
from typing import Callable, List

from .models import RequestOutcome, RequestSpec

RequestFactory = Callable[[int], RequestSpec]


class ConcurrencyController:
    """
    Runs a fixed number of requests with at most ``concurrency`` in flight.

    Requests are dispatched in consecutive batches of
    ``min(concurrency, remaining)``. All requests of a batch run in parallel
    and the next batch starts only once every request of the current batch
    has settled. A failing request never cancels its siblings.
    """

    def __init__(self, log_batches: bool = True):
        self.log_batches = log_batches
        self.logger = logging.getLogger(__name__)

    async def run(
        self,
        total_requests: int,
        concurrency: int,
        request_factory: RequestFactory,
        driver,
    ) -> List[RequestOutcome]:
        """
        Send ``total_requests`` requests through ``driver``.

        Args:
            total_requests: Number of requests to send
            concurrency: Maximum requests in flight, values below 1 count as 1
            request_factory: Builds the request for index 0..total_requests-1
            driver: Transport driver exposing ``send_one``

        Returns:
            One RequestOutcome per request, in dispatch order
        """
        outcomes: List[RequestOutcome] = []
        if total_requests <= 0:
            return outcomes

        batch_size = max(concurrency, 1)
        batch_count = (total_requests + batch_size - 1) // batch_size

        for batch_number, batch_start in enumerate(range(0, total_requests, batch_size), 1):
            batch_end = min(batch_start + batch_size, total_requests)
            tasks = [
                driver.send_one(request_factory(index))
                for index in range(batch_start, batch_end)
            ]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            succeeded = 0
            for result in results:
                if isinstance(result, BaseException):
                    self.logger.warning(f"Request raised {result.__class__.__name__}: {result}")
                    result = RequestOutcome(
                        success=False,
                        error_message=str(result) or result.__class__.__name__,
                    )
                succeeded += result.success
                outcomes.append(result)

            if self.log_batches:
                self.logger.info(
                    f"Batch {batch_number}/{batch_count} completed: "
                    f"{succeeded}/{len(results)} succeeded"
                )

        return outcomes

    async def run_stream(
        self,
        total_requests: int,
        concurrency: int,
        request_factory: RequestFactory,
        driver,
    ) -> List[RequestOutcome]:
        """
        Send every request over a single driver stream.

        ``concurrency`` bounds the unanswered messages on the stream.
        """
        if total_requests <= 0:
            return []
        requests = [request_factory(index) for index in range(total_requests)]
        try:
            return await driver.send_stream(requests, max(concurrency, 1))
        except Exception as e:
            self.logger.warning(f"Stream raised {e.__class__.__name__}: {e}")
            message = str(e) or e.__class__.__name__
            return [RequestOutcome(success=False, error_message=message) for _ in requests]
