"""
Recommend Package for the Netflix Rating Exercise

This package contains modular components for:
- Data ingestion (CSV transactions, movie titles, test set)
- Customer id densification (sparse raw ids -> virtual ids)
- Rating matrix construction
- Pearson-cosine similarity matrices
- Spectral analysis of similarity matrices
- Models (matrix completion, spectral clustering)
- Prediction output and diagnostic plots
"""

__version__ = "0.1.0"
