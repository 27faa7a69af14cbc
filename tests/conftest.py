import pytest
import httpx


def make_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose every request is answered by `handler(request)`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload, status_code: int = 200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return handler


@pytest.fixture
def generic_payload():
    """What our own relay answers with."""
    return {
        "results": [
            {"title": "Python.org", "url": "https://python.org", "snippet": "Official site"},
            {"title": "Docs", "url": "https://docs.python.org", "description": "Documentation"},
            {"url": "https://no-title.example"},
            {"title": 42, "url": "https://bad-title.example"},
        ],
        "images": [
            {"title": "Logo", "url": "https://img.example/logo.png", "sourceUrl": "https://python.org"},
            {"title": "Snake", "url": "https://img.example/snake.png", "source_url": "https://snakes.example"},
            {"title": "Bare", "url": "https://img.example/bare.png"},
            {"title": "No url"},
        ],
    }


@pytest.fixture
def knowledge_payload():
    """Instant-answer payload with nested topic groups."""
    return {
        "Heading": "Python",
        "AbstractURL": "https://en.wikipedia.org/wiki/Python",
        "Results": [
            {"Text": "Official site - The Python home page", "FirstURL": "https://www.python.org"},
        ],
        "RelatedTopics": [
            {"Text": "Python (programming language) - A high-level language", "FirstURL": "https://duckduckgo.com/Python_(programming_language)"},
            {
                "Name": "Animals",
                "Topics": [
                    {"Text": "Pythonidae - A family of snakes", "FirstURL": "https://duckduckgo.com/Pythonidae"},
                    {"Text": "No url here"},
                ],
            },
            {"Text": "Monty Python", "FirstURL": "https://en.wikipedia.org/wiki/Monty_Python"},
        ],
    }


@pytest.fixture
def wiki_images_payload():
    return {
        "query": {
            "pages": {
                "101": {"pageid": 101, "title": "Python (programming language)", "thumbnail": {"source": "https://upload.example/py.png"}},
                "102": {"pageid": 102, "title": "No thumbnail"},
                "103": {"pageid": 103, "title": "Ball python", "thumbnail": {"source": ""}},
                "104": {"pageid": 104, "title": "Reticulated python", "thumbnail": {"source": "https://upload.example/ret.png"}},
            }
        }
    }


@pytest.fixture
def brave_payload():
    return {
        "web": {
            "results": [
                {"title": "Python.org", "url": "https://www.python.org", "description": "The official <strong>Python</strong> site"},
                {"title": "Learn Python", "url": "https://learnpython.org"},
                {"title": "Broken"},
            ]
        },
        "images": {
            "results": [
                {"title": "Python logo", "url": "https://imgs.example/logo.png", "page_url": "https://www.python.org"},
                {"title": "Snake", "url": "https://imgs.example/snake.png"},
            ]
        },
    }
