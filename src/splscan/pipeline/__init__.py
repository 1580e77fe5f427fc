"""Pipeline stages and the workflows built on them."""
