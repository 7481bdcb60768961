"""
Face verification with reduced embeddings package.

This package provides modules for:
- cache: Persistent embedding cache filled through the face pipeline
- pipeline: Face pipeline contract, face selection and alignment
- datasets: LFW and CPLFW pair files
- pairs: Labelled embedding pairs as arrays
- metrics: Confusion matrix of a distance threshold
- threshold: Optimal threshold search
- subsets: Truncation, random, exhaustive, greedy and heatmap dimension search
- quantization: Integer quantization experiments and embedding export
- verification: ROC-AUC and EER summaries
- utils: Reports and visualization
"""
