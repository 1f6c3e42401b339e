from fastapi import APIRouter, BackgroundTasks, Request, Response

from core.logger import log

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/orders/create", include_in_schema=False)
async def orders_create(request: Request, background_tasks: BackgroundTasks):
    """
    Shopify orders/create webhook.

    Always answers 200 with an empty body as soon as the raw body is read:
    Shopify retries on anything else, and processing (HMAC check, scoring,
    persistence, notifications, realtime push) happens after the response
    in OrderPipeline.process, which logs instead of raising.
    """
    try:
        raw_body = await request.body()
        background_tasks.add_task(
            request.app.state.pipeline.process,
            shop=request.headers.get("x-shopify-shop-domain"),
            topic=request.headers.get("x-shopify-topic"),
            raw_body=raw_body,
            signature=request.headers.get("x-shopify-hmac-sha256"),
        )
    except Exception as e:
        # still 200: a non-2xx only makes Shopify redeliver the same event
        log.exception("Error in webhook handler: %s", e)

    return Response(status_code=200)
