"""Developer CLI for simpledb."""
