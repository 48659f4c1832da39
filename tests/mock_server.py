"""Mock company directory for browser integration tests.

The listing page only renders its first batch of companies. Every scroll
to the bottom appends the next batch, the way the real directory loads
more results. It also carries the links discovery must ignore: filter
pages, query-string links, anchors and job listings.
"""

from __future__ import annotations

import json

from aiohttp import web

COMPANIES: dict[str, dict[str, str]] = {
    "acme-rockets": {
        "name": "Acme Rockets",
        "tagline": "Reusable rockets for small satellites",
        "description": (
            "Acme Rockets builds reusable launch vehicles so that small "
            "satellite operators can reach orbit every week."
        ),
    },
    "bluebird-health": {
        "name": "Bluebird Health",
        "tagline": "Primary care over text message",
        "description": (
            "Bluebird Health connects patients with licensed clinicians "
            "over SMS, with no app download required."
        ),
    },
    "cobalt-ledger": {
        "name": "Cobalt Ledger",
        "tagline": "Accounting for hardware startups",
        "description": (
            "Cobalt Ledger reconciles inventory, purchase orders and "
            "contract manufacturer invoices automatically."
        ),
    },
    "dune-robotics": {
        "name": "Dune Robotics",
        "tagline": "Robots that clean solar farms",
        "description": (
            "Dune Robotics operates waterless cleaning robots that keep "
            "desert solar farms at peak output."
        ),
    },
    "ember-ai": {
        "name": "Ember AI",
        "tagline": "Wildfire detection from satellite imagery",
        "description": (
            "Ember AI spots wildfire ignitions within minutes using "
            "commercial satellite imagery and weather data."
        ),
    },
}

# Profile without any of the expected fields.
BROKEN_SLUG = "ghost-co"

BATCH_SIZE = 2

QA_ANSWERS: list[tuple[str, list[str]]] = [
    ("What is your company going to make?", ["We make it.", "Quickly."]),
    ("Why did you pick this idea?", ["We needed it ourselves."]),
]


def company_slugs() -> list[str]:
    return [*COMPANIES, BROKEN_SLUG]


def _company_link(slug: str) -> str:
    return (
        f'<div class="company" style="height: 600px">'
        f'<a href="/companies/{slug}">{slug}</a></div>'
    )


LISTING_TEMPLATE = """<!DOCTYPE html>
<html>
<head><title>Mock Startup Directory</title></head>
<body>
  <nav>
    <a href="/companies">All companies</a>
    <a href="/companies/">All companies</a>
    <a href="/companies?batch=W24">W24</a>
    <a href="/companies/industry/fintech">Fintech</a>
    <a href="/companies/location/san-francisco">San Francisco</a>
    <a href="/companies/batch/w24">Batch</a>
    <a href="/companies/acme-rockets#team">Acme team</a>
    <a href="/companies/acme-rockets/jobs">Acme jobs</a>
  </nav>
  <div id="results">{initial}</div>
  <script>
    const pending = {pending};
    window.addEventListener("scroll", () => {{
      if (pending.length === 0) return;
      const batch = pending.shift();
      const results = document.getElementById("results");
      for (const html of batch) {{
        results.insertAdjacentHTML("beforeend", html);
      }}
    }});
  </script>
</body>
</html>"""


def generate_listing_html() -> str:
    """Render the listing page with the first batch visible."""
    links = [_company_link(slug) for slug in company_slugs()]
    batches = [
        links[i : i + BATCH_SIZE] for i in range(0, len(links), BATCH_SIZE)
    ]
    # The first company shows up again in a later batch.
    batches[-1].append(_company_link("acme-rockets"))
    return LISTING_TEMPLATE.format(
        initial="".join(batches[0]), pending=json.dumps(batches[1:])
    )


def generate_profile_html(slug: str) -> str:
    if slug == BROKEN_SLUG:
        return "<html><body><p>This company has moved.</p></body></html>"

    company = COMPANIES[slug]
    blocks = "".join(
        '<div class="mb-8">'
        f'<h4 class="font-bold text-black">{question}</h4>'
        "<div>" + "".join(f"<p>{p}</p>" for p in answers) + "</div>"
        "</div>"
        for question, answers in QA_ANSWERS
    )
    return f"""<!DOCTYPE html>
<html>
<head><title>{company["name"]}</title></head>
<body>
  <h1 class="text-3xl font-bold">{company["name"]}</h1>
  <div class="text-xl">{company["tagline"]}</div>
  <div class="prose max-w-full whitespace-pre-line">
    {company["description"]}
  </div>
  <section>{blocks}</section>
</body>
</html>"""


async def listing_handler(request: web.Request) -> web.Response:
    return web.Response(
        text=generate_listing_html(), content_type="text/html"
    )


async def profile_handler(request: web.Request) -> web.Response:
    slug = request.match_info["slug"]
    if slug != BROKEN_SLUG and slug not in COMPANIES:
        raise web.HTTPNotFound()
    return web.Response(
        text=generate_profile_html(slug), content_type="text/html"
    )


def create_app() -> web.Application:
    """Create the aiohttp application for the mock directory."""
    app = web.Application()
    app.router.add_get("/companies", listing_handler)
    app.router.add_get("/companies/{slug}", profile_handler)
    return app
