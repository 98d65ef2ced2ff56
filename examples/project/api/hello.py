"""GET /api/hello?name=you"""

from lib.greeting import greet


def handler(request, response):
    response.json({"message": greet(request.query.get("name", "world"))})
