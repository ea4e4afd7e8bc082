# Generated pages pull Tailwind from its CDN and stock photos from the image hosts
SANDBOX_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.tailwindcss.com; "
    "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
    "font-src 'self' https://fonts.gstatic.com; "
    "img-src 'self' data: blob: https:;"
)

PREVIEW_ERROR_HOOK = """<script>
window.addEventListener('error', function (e) {
  parent.postMessage({type: 'preview-error', message: String(e.message)}, '*');
});
</script>"""


def with_error_hook(document: str) -> str:
    """Insert the error-forwarding script right after <head>, or at the top if there is none."""
    lower = document.lower()
    idx = lower.find("<head>")
    if idx == -1:
        return PREVIEW_ERROR_HOOK + document
    idx += len("<head>")
    return document[:idx] + PREVIEW_ERROR_HOOK + document[idx:]
