"""
Batch jobs.

- Gazette Text Sync: acquires gazette texts for many legislative records
  with a pool of workers
"""
