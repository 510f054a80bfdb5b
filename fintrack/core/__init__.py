"""Cross-cutting helpers: logging and the error taxonomy."""
