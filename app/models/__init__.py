from .organization import Organization
from .recording import Recording, RecordingStatus
from .transcript import Transcript
from .process_template import ProcessTemplate
from .analysis_result import AnalysisResult
# base and mixins are imported by the above as needed
