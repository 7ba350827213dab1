from smart2048.config import CONFIG, configure_logging
from smart2048.main import Engine

HELP = "Moves: w/a/s/d or up/left/down/right | h: hint | auto [n]: let the AI play | new | q: quit"


def main():
    configure_logging()
    # initialize game and engine
    game = Engine(depth=CONFIG.search.depth)
    print(HELP)

    while True:
        game.print_board()
        print("----------------------------")
        if game.over:
            command = input("Game over. 'new' to restart or 'q' to quit: ").strip().lower()
        else:
            command = input("> ").strip().lower()

        if command in ("q", "quit", "exit"):
            break
        if command in ("new", "restart"):
            game.setup()
            continue
        if command in ("h", "hint"):
            best = game.get_best_move()
            if best.direction is None:
                print("No move available.")
            else:
                print(f"Hint: {best.direction.name.lower()} | Eval: {best.value:.1f}")
            continue
        if command.startswith("auto"):
            parts = command.split()
            try:
                limit = int(parts[1]) if len(parts) > 1 else None
            except ValueError:
                print(f"Not a number: {parts[1]}")
                continue
            played = game.run(max_moves=limit)
            print(f"AI played {played} moves.")
            continue

        try:
            result = game.make_move(command)
        except ValueError:
            print("Unknown command, try again.")
            print(HELP)
            continue
        if not result.moved:
            print("Nothing moves that way.")

    print(f"Final score: {game.score}")


if __name__ == "__main__":
    main()
