from subgraph_status.cli import cli

if __name__ == '__main__':
    cli(prog_name='subgraph-status')
