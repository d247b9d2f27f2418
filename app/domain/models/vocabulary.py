from app.domain.models.statement import IRI

NFO = "http://www.semanticdesktop.org/ontologies/2007/03/22/nfo#"
NIE = "http://www.semanticdesktop.org/ontologies/2007/01/19/nie#"
DCT = "http://purl.org/dc/terms/"
DBPEDIA = "http://dbpedia.org/ontology/"
MU_CORE = "http://mu.semte.ch/vocabularies/core/"

RDF_TYPE = IRI("http://www.w3.org/1999/02/22-rdf-syntax-ns#type")

NFO_FILE_DATA_OBJECT = IRI(f"{NFO}FileDataObject")
NFO_FILE_NAME = IRI(f"{NFO}fileName")
NFO_FILE_SIZE = IRI(f"{NFO}fileSize")
NIE_DATA_SOURCE = IRI(f"{NIE}dataSource")
DCT_FORMAT = IRI(f"{DCT}format")
DCT_CREATED = IRI(f"{DCT}created")
DCT_MODIFIED = IRI(f"{DCT}modified")
DBPEDIA_FILE_EXTENSION = IRI(f"{DBPEDIA}fileExtension")
MU_UUID = IRI(f"{MU_CORE}uuid")
