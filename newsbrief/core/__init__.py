"""Article extraction and batch scraping."""
