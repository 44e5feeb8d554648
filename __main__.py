"""
zio-lucene infrastructure
Entry point run by the Pulumi CLI, see zio_lucene_infra/stack.py for the wiring
"""
from zio_lucene_infra.stack import main

main()
