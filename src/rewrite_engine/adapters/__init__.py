"""Host adapters embedding the rewrite engine in UIs."""
