def print_info(depth, value, nodes, cutoffs, elapsed, direction):
        move_str = direction.name.lower() if direction is not None else "none"
        nps = int(nodes / elapsed) if elapsed > 0 else 0

        print(f"info depth {depth} score {value:.1f} nodes {nodes} cutoffs {cutoffs} nps {nps} time {int(elapsed * 1000)} bestmove {move_str}")
