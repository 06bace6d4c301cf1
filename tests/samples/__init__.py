"""Source modules the generator is run against, with their expected output."""
