import argparse
import json
import logging
import sys

from lottery_ensemble.backtest import Backtester, derive_weights
from lottery_ensemble.config import (
    DATA_FILE,
    DEFAULT_LOTTERY,
    ENSEMBLE_CONFIG,
    LOGS_DIR,
    LOTTERY_CONFIGS,
    PREDICTIONS_DIR,
    WEIGHTS_FILE,
    PredictionConfig,
)
from lottery_ensemble.consensus import WeightedEnsemble
from lottery_ensemble.data import LotteryDataManager, generate_synthetic_draws
from lottery_ensemble.registry import build_default_registry
from lottery_ensemble.weights import JsonWeightProvider

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "lottery_ensemble.log"),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Weighted ensemble lottery number generator")
    parser.add_argument("--lottery", choices=sorted(LOTTERY_CONFIGS), default=DEFAULT_LOTTERY, help="Lottery preset")
    parser.add_argument("--data-file", default=str(DATA_FILE), help="CSV or JSON draw history")
    parser.add_argument("--synthetic", type=int, default=0, help="Use N synthetic draws instead of a data file")
    parser.add_argument("--games", type=int, default=ENSEMBLE_CONFIG["default_games"], help="Number of games to generate")
    parser.add_argument("--weights-file", default=str(WEIGHTS_FILE), help="JSON file with strategy weights")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable runs")
    parser.add_argument("--no-ml", action="store_true", help="Leave out the XGBoost and random forest strategies")
    parser.add_argument("--backtest", action="store_true", help="Run the strategy backtest")
    parser.add_argument("--backtest-window", type=int, default=50, help="Number of past draws to backtest")
    parser.add_argument("--save-weights", action="store_true", help="Store backtest-derived weights in --weights-file")
    args = parser.parse_args()

    try:
        logger.info("=== Starting Lottery Ensemble ===")
        config = PredictionConfig.for_lottery(args.lottery, seed=args.seed)

        # 1. Load Data
        if args.synthetic:
            logger.info(f"Generating {args.synthetic} synthetic draws...")
            draws = generate_synthetic_draws(args.synthetic, config.numbers_to_draw, config.min_number,
                                             config.max_number, rng=config.rng)
        else:
            logger.info("Loading data...")
            draws = LotteryDataManager(args.data_file).load_draws()

        # 2. Initialize Strategies
        registry = build_default_registry(include_ml=not args.no_ml)
        weight_provider = JsonWeightProvider(args.weights_file)

        if args.backtest:
            backtester = Backtester(registry, window=args.backtest_window)
            summary = backtester.run(draws, config)
            if args.save_weights and not summary.empty:
                previous = weight_provider.get_weights(config.lottery_context)
                weights = derive_weights(summary, config.numbers_to_draw, previous)
                weight_provider.save(config.lottery_context, weights)
            return

        ensemble = WeightedEnsemble(registry, weight_provider)
        registry.register(ensemble)

        # 3. Generate Predictions
        logger.info(f"Generating {args.games} games...")
        consensus = ensemble.predict_with_consensus(draws, config)
        diversified = ensemble.predict_diversified(draws, config, game_count=args.games)

        # 4. Output Results
        output = {
            "lottery": args.lottery,
            "consensus": {
                "numbers": consensus.numbers,
                "consensus": consensus.consensus,
                "strategy_agreement": [{"number": n, "agreement": p} for n, p in consensus.strategy_agreement],
                "top_strategies": consensus.top_strategies,
                "degraded": consensus.degraded,
            },
            "games": diversified.games,
            "degraded": diversified.degraded,
        }
        output_file = PREDICTIONS_DIR / f"{args.lottery}_predictions.json"
        with open(output_file, 'w') as f:
            json.dump(output, f, indent=4)

        print("\n=== Consensus ===")
        print(f"Numbers: {consensus.numbers} (consensus {consensus.consensus}%)")
        print(f"Top strategies: {', '.join(consensus.top_strategies)}")
        print("\n=== Games ===")
        for i, game in enumerate(diversified.games, 1):
            print(f"Game {i}: {game}")
        if len(diversified) < args.games:
            print(f"Only {len(diversified)} of {args.games} games could be generated.")

        logger.info(f"Predictions saved to {output_file}")
        logger.info("=== Execution Complete ===")

    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

# python3 main.py --synthetic 600 --seed 42 --games 5
# python3 main.py --data-file lottery_data/megasena.json --backtest --save-weights
