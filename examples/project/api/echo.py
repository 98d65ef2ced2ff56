"""POST /api/echo with any supported content-type; replies with what it parsed."""

from fndev import ClientInputError


async def handler(request, response):
    try:
        body = request.body
    except ClientInputError as e:
        response.status(e.status_code).json({"error": e.message})
        return

    if isinstance(body, bytes):
        response.send(body)
    else:
        response.json({"body": body, "cookies": request.cookies, "query": request.query})
