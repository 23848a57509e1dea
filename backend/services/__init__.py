# Gateways are built per application in api.dependencies.build_gateways.
# Import specific services where needed:
# from services.upload_gateway import BlobUploadGateway
# from services.vision_analysis import VisionAnalysisGateway
# from services.image_generation import ImageGenerationGateway

__all__ = []
