"""Static page served to browsers in place of an in-browser query console"""

LANDING_PAGE_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>GraphQL API</title>
    <style>
      body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
             margin: 0; min-height: 100vh; display: flex; align-items: center;
             justify-content: center; background: #f4f6f8; color: #1b2430; }
      main { max-width: 32rem; padding: 2rem; text-align: center; }
      code { background: #e3e8ee; padding: 0.1rem 0.35rem; border-radius: 4px; }
    </style>
  </head>
  <body>
    <main>
      <h1>GraphQL API</h1>
      <p>This endpoint accepts GraphQL operations as <code>POST</code> requests
         with a JSON body: <code>{"query": "...", "variables": {}}</code>.</p>
      <p>The interactive query console is disabled on this server.</p>
    </main>
  </body>
</html>
"""
