from typing import Optional


class PipelineError(Exception):
    """
    Erreur terminale d'une session d'upload.
    `message` est destiné à l'utilisateur (toast / notification), `kind` au client API.
    """

    kind = "pipeline"
    default_message = "Upload failed. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UploadValidationError(PipelineError):
    """Fichier local refusé : n'atteint jamais le réseau."""
    kind = "validation"


class SessionBusyError(PipelineError):
    kind = "busy"
    default_message = "An upload is already in progress."


class RemoteServiceError(PipelineError):
    """Échec côté service d'assets (staging, enregistrement, polling)."""
    kind = "remote_service"


class TransferError(PipelineError):
    """Échec du POST multipart ; `status` vaut None pour une panne réseau."""
    kind = "transfer"

    def __init__(self, status: Optional[int] = None, message: Optional[str] = None):
        self.status = status
        super().__init__(message or self.default_message)


class ProcessingTimeoutError(PipelineError, TimeoutError):
    kind = "timeout"
    default_message = (
        "Video processing timed out. The video may still be processing - "
        "check back in a few minutes."
    )


class PipelineCancelledError(PipelineError):
    kind = "cancelled"
    default_message = "Upload cancelled."


class FinalizationError(PipelineError):
    """Le commit de l'enregistrement a échoué ; l'asset distant n'est pas supprimé."""
    kind = "finalization"
    default_message = "Failed to save the video."


class InvalidTransition(RuntimeError):
    pass
