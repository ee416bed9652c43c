"""
Services for the workflow package.
"""
from photo_stitcher.workflow.services.image_loader import ImageLoader
from photo_stitcher.workflow.services.executor import JobExecutor
from photo_stitcher.workflow.services.job_controller import JobController, JobTracker
